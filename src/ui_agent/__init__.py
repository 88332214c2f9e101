"""
UI-Agent: resolve elements picked in a running page back to the source
code that renders them.
"""
__version__ = "0.1.0"
