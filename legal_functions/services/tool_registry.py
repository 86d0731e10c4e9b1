"""
Registry of HTTP-invocable legal tools, keyed by route name.
"""
from legal_functions.services.clause_improver import ClauseImproverTool
from legal_functions.services.document_analysis import DocumentAnalysisTool
from legal_functions.services.document_drafting import DocumentDraftingTool
from legal_functions.services.form_organizer import FormOrganizerTool
from legal_functions.services.prompt_optimizer import PromptOptimizerTool
from legal_functions.services.training_validator import TrainingValidatorTool

TOOL_REGISTRY = {
    tool_class.name: tool_class
    for tool_class in (
        DocumentAnalysisTool,
        DocumentDraftingTool,
        ClauseImproverTool,
        PromptOptimizerTool,
        FormOrganizerTool,
        TrainingValidatorTool,
    )
}


def create_tool(name: str, config, client=None, sink=None):
    """
    Instantiate a registered tool with its collaborators.

    Raises:
        KeyError: If no tool is registered under `name`.
    """
    return TOOL_REGISTRY[name](config, client=client, sink=sink)
