"""The sixteen cleaning steps, in pipeline order, and their declarative tables."""

from enum import Enum

from scanclean.models import SectionType


class ProcessingMethod(str, Enum):
    HEURISTIC_ONLY = "heuristic_only"
    AI_ONLY = "ai_only"
    HYBRID = "hybrid"


class PipelinePhase(str, Enum):
    RECONNAISSANCE = "reconnaissance"
    METADATA_EXTRACTION = "metadata_extraction"
    SEMANTIC_CLEANING = "semantic_cleaning"
    STRUCTURAL_CLEANING = "structural_cleaning"
    REFERENCE_CLEANING = "reference_cleaning"
    FINISHING = "finishing"
    OPTIMIZATION = "optimization"
    ASSEMBLY = "assembly"
    FINAL_REVIEW = "final_review"


class CleaningStep(str, Enum):
    """Declaration order is execution order."""

    RECONNAISSANCE = "reconnaissance"
    EXTRACT_METADATA = "extract_metadata"
    REMOVE_PAGE_NUMBERS = "remove_page_numbers"
    REMOVE_HEADERS_FOOTERS = "remove_headers_footers"
    REMOVE_FRONT_MATTER = "remove_front_matter"
    REMOVE_TABLE_OF_CONTENTS = "remove_table_of_contents"
    REMOVE_BACK_MATTER = "remove_back_matter"
    REMOVE_INDEX = "remove_index"
    REMOVE_AUXILIARY_LISTS = "remove_auxiliary_lists"
    REMOVE_CITATIONS = "remove_citations"
    REMOVE_FOOTNOTES_ENDNOTES = "remove_footnotes_endnotes"
    CLEAN_SPECIAL_CHARACTERS = "clean_special_characters"
    REFLOW_PARAGRAPHS = "reflow_paragraphs"
    OPTIMIZE_PARAGRAPH_LENGTH = "optimize_paragraph_length"
    ADD_STRUCTURE = "add_structure"
    FINAL_REVIEW = "final_review"

    @property
    def number(self) -> int:
        return list(CleaningStep).index(self) + 1

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()

    @property
    def method(self) -> ProcessingMethod:
        return STEP_METHODS[self]

    @property
    def phase(self) -> PipelinePhase:
        return STEP_PHASES[self]

    @property
    def is_removal(self) -> bool:
        return self in REMOVAL_STEPS

    @classmethod
    def from_number(cls, number: int) -> "CleaningStep":
        steps = list(cls)
        if not 1 <= number <= len(steps):
            raise ValueError(f"Step number must be 1-{len(steps)}, got {number}")
        return steps[number - 1]


STEP_METHODS = {
    CleaningStep.RECONNAISSANCE: ProcessingMethod.AI_ONLY,
    CleaningStep.EXTRACT_METADATA: ProcessingMethod.AI_ONLY,
    CleaningStep.REMOVE_PAGE_NUMBERS: ProcessingMethod.HYBRID,
    CleaningStep.REMOVE_HEADERS_FOOTERS: ProcessingMethod.HYBRID,
    CleaningStep.REMOVE_FRONT_MATTER: ProcessingMethod.HYBRID,
    CleaningStep.REMOVE_TABLE_OF_CONTENTS: ProcessingMethod.HYBRID,
    CleaningStep.REMOVE_BACK_MATTER: ProcessingMethod.HYBRID,
    CleaningStep.REMOVE_INDEX: ProcessingMethod.HYBRID,
    CleaningStep.REMOVE_AUXILIARY_LISTS: ProcessingMethod.HYBRID,
    CleaningStep.REMOVE_CITATIONS: ProcessingMethod.AI_ONLY,
    CleaningStep.REMOVE_FOOTNOTES_ENDNOTES: ProcessingMethod.AI_ONLY,
    CleaningStep.CLEAN_SPECIAL_CHARACTERS: ProcessingMethod.HEURISTIC_ONLY,
    CleaningStep.REFLOW_PARAGRAPHS: ProcessingMethod.AI_ONLY,
    CleaningStep.OPTIMIZE_PARAGRAPH_LENGTH: ProcessingMethod.AI_ONLY,
    CleaningStep.ADD_STRUCTURE: ProcessingMethod.HEURISTIC_ONLY,
    CleaningStep.FINAL_REVIEW: ProcessingMethod.AI_ONLY,
}

# Every step belongs to exactly one phase; used for reporting only
STEP_PHASES = {
    CleaningStep.RECONNAISSANCE: PipelinePhase.RECONNAISSANCE,
    CleaningStep.EXTRACT_METADATA: PipelinePhase.METADATA_EXTRACTION,
    CleaningStep.REMOVE_PAGE_NUMBERS: PipelinePhase.SEMANTIC_CLEANING,
    CleaningStep.REMOVE_HEADERS_FOOTERS: PipelinePhase.SEMANTIC_CLEANING,
    CleaningStep.REMOVE_FRONT_MATTER: PipelinePhase.STRUCTURAL_CLEANING,
    CleaningStep.REMOVE_TABLE_OF_CONTENTS: PipelinePhase.STRUCTURAL_CLEANING,
    CleaningStep.REMOVE_BACK_MATTER: PipelinePhase.STRUCTURAL_CLEANING,
    CleaningStep.REMOVE_INDEX: PipelinePhase.STRUCTURAL_CLEANING,
    CleaningStep.REMOVE_AUXILIARY_LISTS: PipelinePhase.REFERENCE_CLEANING,
    CleaningStep.REMOVE_CITATIONS: PipelinePhase.REFERENCE_CLEANING,
    CleaningStep.REMOVE_FOOTNOTES_ENDNOTES: PipelinePhase.REFERENCE_CLEANING,
    CleaningStep.CLEAN_SPECIAL_CHARACTERS: PipelinePhase.FINISHING,
    CleaningStep.REFLOW_PARAGRAPHS: PipelinePhase.OPTIMIZATION,
    CleaningStep.OPTIMIZE_PARAGRAPH_LENGTH: PipelinePhase.OPTIMIZATION,
    CleaningStep.ADD_STRUCTURE: PipelinePhase.ASSEMBLY,
    CleaningStep.FINAL_REVIEW: PipelinePhase.FINAL_REVIEW,
}

# Steps that may only delete content
REMOVAL_STEPS = frozenset(
    {
        CleaningStep.REMOVE_PAGE_NUMBERS,
        CleaningStep.REMOVE_HEADERS_FOOTERS,
        CleaningStep.REMOVE_FRONT_MATTER,
        CleaningStep.REMOVE_TABLE_OF_CONTENTS,
        CleaningStep.REMOVE_BACK_MATTER,
        CleaningStep.REMOVE_INDEX,
        CleaningStep.REMOVE_AUXILIARY_LISTS,
        CleaningStep.REMOVE_CITATIONS,
        CleaningStep.REMOVE_FOOTNOTES_ENDNOTES,
    }
)

# Structural region each boundary step removes
BOUNDARY_STEPS = {
    CleaningStep.REMOVE_FRONT_MATTER: SectionType.FRONT_MATTER,
    CleaningStep.REMOVE_TABLE_OF_CONTENTS: SectionType.TABLE_OF_CONTENTS,
    CleaningStep.REMOVE_BACK_MATTER: SectionType.BACK_MATTER,
    CleaningStep.REMOVE_INDEX: SectionType.INDEX,
}

DEFAULT_DISABLED_STEPS = frozenset(
    {
        CleaningStep.REMOVE_BACK_MATTER,
        CleaningStep.REMOVE_AUXILIARY_LISTS,
        CleaningStep.REMOVE_CITATIONS,
        CleaningStep.REMOVE_FOOTNOTES_ENDNOTES,
    }
)
