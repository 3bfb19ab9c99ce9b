"""
Phase Agents

One LLM-backed executor per publishing phase.
"""

from typing import Callable, Dict, List, Optional

from ..models.document import WorkItem
from ..models.enums import DocumentState
from ..models.reports import ArticleDraft, FinalArticle, ResearchBrief, ReviewReport, VerificationReport
from .base_agent import BaseAgent, LLMBackend

MIN_KEY_FACTS = 3
MIN_DRAFT_RATIO = 0.5


class ResearchAgent(BaseAgent[ResearchBrief]):
    phase = DocumentState.RESEARCHING
    response_model = ResearchBrief
    role = "Researcher"

    def build_prompt(self, work_item: WorkItem) -> str:
        return (
            "Research the topic. Return JSON with keys: summary (string), key_facts (list of strings), "
            "sources (list of strings), glossary (object of term -> definition)."
        )

    def validation_problems(self, work_item: WorkItem) -> List[str]:
        brief = work_item.research_brief
        if brief is None:
            return ["no research brief"]
        if len(brief.key_facts) < MIN_KEY_FACTS:
            return [f"fewer than {MIN_KEY_FACTS} key facts ({len(brief.key_facts)})"]
        return []


class WriterAgent(BaseAgent[ArticleDraft]):
    phase = DocumentState.DRAFTING
    response_model = ArticleDraft
    role = "Writer"

    def build_prompt(self, work_item: WorkItem) -> str:
        brief = work_item.research_brief
        facts = "\n".join(f"- {fact}" for fact in brief.key_facts) if brief else ""
        lines = [
            "Write the article from this research.",
            f"Research summary: {brief.summary if brief else ''}",
            f"Key facts:\n{facts}",
        ]
        if work_item.draft is not None:
            lines.append(f"Previous draft:\n{work_item.draft.content}")
        lines.append("Return JSON with keys: title, content, summary.")
        return "\n\n".join(lines)

    def validation_problems(self, work_item: WorkItem) -> List[str]:
        draft = work_item.draft
        if draft is None:
            return ["no article draft"]
        if not draft.content.strip():
            return ["draft content is empty"]
        target = work_item.topic_brief.target_length
        if draft.word_count < target * MIN_DRAFT_RATIO:
            return [f"word count {draft.word_count} is less than {MIN_DRAFT_RATIO:.0%} of target {target}"]
        return []


class FactCheckerAgent(BaseAgent[VerificationReport]):
    phase = DocumentState.VERIFYING
    response_model = VerificationReport
    role = "FactChecker"

    def build_prompt(self, work_item: WorkItem) -> str:
        sources = work_item.research_brief.sources if work_item.research_brief else []
        return (
            "Check every factual claim in the draft against the research sources.\n"
            f"Sources: {', '.join(sources) or 'none listed'}\n\n"
            f"Draft:\n{work_item.draft.content if work_item.draft else ''}\n\n"
            "Return JSON with keys: verified_claims (list of strings), questionable_claims "
            "(list of {claim, issue, suggestion}), consistency_issues (list of strings), "
            "confidence (low|medium|high), recommended_action (approve|revise|reject), rejection_reason."
        )

    def validation_problems(self, work_item: WorkItem) -> List[str]:
        report = work_item.verification_report
        if report is None:
            return ["no verification report"]
        if not report.verified_claims and not report.questionable_claims:
            return ["no claims were checked"]
        return []


class EditorAgent(BaseAgent[FinalArticle]):
    phase = DocumentState.EDITING
    response_model = FinalArticle
    role = "Editor"

    def __init__(
        self,
        backend: LLMBackend,
        existing_pages: Optional[Callable[[], List[str]]] = None,
        system_instruction: Optional[str] = None,
    ):
        """
        Initialize editor.

        Args:
            backend: Text-generation client
            existing_pages: Returns the names of already published pages; read
                on every run so re-edits see pages published in between
            system_instruction: Optional text placed before every prompt
        """
        super().__init__(backend, system_instruction)
        self.existing_pages = existing_pages

    def link_targets(self, work_item: WorkItem) -> List[str]:
        """Related pages from the brief followed by published pages, without the article itself."""
        pages = list(work_item.topic_brief.related_pages)
        if self.existing_pages is not None:
            pages.extend(self.existing_pages())
        targets = []
        for page in pages:
            if page != work_item.page_name and page not in targets:
                targets.append(page)
        return targets

    def build_prompt(self, work_item: WorkItem) -> str:
        lines = [
            "Polish the article for publication and rate its quality from 0.0 to 1.0.",
            f"Draft:\n{work_item.draft.content if work_item.draft else ''}",
        ]
        links = self.link_targets(work_item)
        if links:
            lines.append(f"Link to these pages where relevant: {', '.join(links)}")
        glossary = work_item.research_brief.glossary if work_item.research_brief else {}
        if glossary:
            terms = "\n".join(f"- {term}: {meaning}" for term, meaning in glossary.items())
            lines.append(f"Use these terms consistently:\n{terms}")
        lines.append("Return JSON with keys: title, content, quality_score, edit_summary, added_links.")
        return "\n\n".join(lines)

    def to_output(self, work_item: WorkItem, response: FinalArticle) -> FinalArticle:
        if response.title:
            return response
        return response.model_copy(update={"title": work_item.title})

    def validation_problems(self, work_item: WorkItem) -> List[str]:
        article = work_item.final_article
        if article is None:
            return ["no final article"]
        if not article.content.strip():
            return ["final article content is empty"]
        return []


class CriticAgent(BaseAgent[ReviewReport]):
    phase = DocumentState.REVIEWING
    response_model = ReviewReport
    role = "Critic"

    def build_prompt(self, work_item: WorkItem) -> str:
        return (
            "Review the article's structure, markup syntax and style.\n\n"
            f"Article:\n{work_item.content}\n\n"
            "Return JSON with keys: overall_score (0.0-1.0), structure_issues, syntax_issues, "
            "style_issues, suggestions (lists of strings), recommended_action (approve|revise|reject)."
        )

    def validation_problems(self, work_item: WorkItem) -> List[str]:
        report = work_item.review_report
        if report is None:
            return ["no review report"]
        if report.overall_score <= 0:
            return ["invalid overall score"]
        return []


def build_agents(
    backend: LLMBackend,
    existing_pages: Optional[Callable[[], List[str]]] = None,
) -> Dict[DocumentState, BaseAgent]:
    """Executor table for the orchestrator, every phase sharing one backend."""
    agents = [
        ResearchAgent(backend),
        WriterAgent(backend),
        FactCheckerAgent(backend),
        EditorAgent(backend, existing_pages),
        CriticAgent(backend),
    ]
    return {agent.phase: agent for agent in agents}
