"""
Data schemas for the UI-Agent selection and resolution pipeline.
Shared by the inspector (payload side) and the backend (resolution side).

Wire format is camelCase; Python attributes are snake_case.
"""
from typing import List, Optional, Literal
from pydantic import BaseModel, Field, model_validator


Confidence = Literal["high", "medium", "low"]
Source = Literal["heuristic", "agent"]


class WireModel(BaseModel):
    """Base model accepting both field names and camelCase aliases."""

    class Config:
        populate_by_name = True

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class HighlightRect(WireModel):
    """Viewport rectangle reported to the hover highlighter."""
    top: float
    left: float
    width: float
    height: float


class TestIdInfo(WireModel):
    """Where the nearest data-testid was found relative to the selected element."""
    __test__ = False

    value: str
    on_self: bool = Field(alias="onSelf")
    depth: int = Field(ge=0)  # 0 = self, 1 = parent, ...
    ancestor_tag_name: str = Field(alias="ancestorTagName")

    @model_validator(mode="after")
    def _check_depth(self):
        if self.on_self != (self.depth == 0):
            raise ValueError("onSelf must be true exactly when depth is 0")
        return self


class SelectionPayload(WireModel):
    """Snapshot of a selected element, the sole input to resolution."""
    page_url: str = Field("", alias="pageUrl")
    selector: str = ""
    test_id: Optional[TestIdInfo] = Field(None, alias="testId")
    dom_outer_html: str = Field("", alias="domOuterHtml")
    text_snippet: str = Field("", alias="textSnippet")
    classes: List[str] = Field(default_factory=list)


class ResolveRequest(SelectionPayload):
    """Body of POST /resolve-selection."""
    use_agent_fallback: bool = Field(False, alias="useAgentFallback")

    def payload(self) -> SelectionPayload:
        return SelectionPayload.model_validate(
            self.model_dump(exclude={"use_agent_fallback"})
        )


class CodeLine(WireModel):
    line_number: int = Field(alias="lineNumber")
    content: str
    is_match: bool = Field(alias="isMatch")


class CodeSnippet(WireModel):
    """Window of source lines around a matched line (1-indexed)."""
    lines: List[CodeLine]
    start_line: int = Field(alias="startLine")
    end_line: int = Field(alias="endLine")
    match_line: int = Field(alias="matchLine")


class ResolutionResult(WireModel):
    """Outcome of a single resolver."""
    confidence: Confidence
    verified: bool
    file_path: str = Field("", alias="filePath")
    line_number: Optional[int] = Field(None, alias="lineNumber")
    component_name: Optional[str] = Field(None, alias="componentName")
    code_snippet: Optional[CodeSnippet] = Field(None, alias="codeSnippet")
    source: Source = "heuristic"


class ResolverOptions(WireModel):
    """Options passed to every resolver."""
    cwd: str
    use_agent_fallback: bool = Field(False, alias="useAgentFallback")


class ComponentContext(WireModel):
    """Response envelope describing where the selected element comes from."""
    id: str
    source: Source = "heuristic"
    confidence: Confidence = "low"
    file_path: str = Field("", alias="filePath")
    component_name: Optional[str] = Field(None, alias="componentName")
    line_number: Optional[int] = Field(None, alias="lineNumber")
    selector_summary: str = Field("", alias="selectorSummary")
    dom_summary: str = Field("", alias="domSummary")
    needs_verification: bool = Field(True, alias="needsVerification")
    verified: bool = False
    code_snippet: Optional[CodeSnippet] = Field(None, alias="codeSnippet")


class ResolveResponse(WireModel):
    component_context: ComponentContext = Field(alias="componentContext")


class SubmissionRequest(WireModel):
    """Body of POST /submit: a verified context plus the user's change request."""
    context: ComponentContext
    user_message: str = Field(alias="userMessage")


class SubmissionResponse(WireModel):
    success: bool
    message: str
    agent_output: Optional[str] = Field(None, alias="agentOutput")
