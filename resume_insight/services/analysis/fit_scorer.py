import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ...schemas.resume import AnalysisResult, ExtractedEntities, ImprovementItem
from .skills import dedupe_skills, match_skills

logger = logging.getLogger("fit_scorer")

NO_JOB_DESCRIPTION_RECOMMENDATION = "Provide a Job Description to get a Fit Score and gap analysis."
ADVISOR_UNAVAILABLE_ADVICE = (
    "AI improvement advice is temporarily unavailable. "
    "The keyword-based fit score and skill gaps above are still accurate."
)


def score_overlap(matched_count: int, required_count: int) -> float:
    if required_count <= 0:
        return 0.0
    score = 100.0 * matched_count / required_count
    return round(min(100.0, max(0.0, score)), 1)


def recommendation_for(score: float, missing: List[str]) -> str:
    if not missing:
        return "Excellent match. Your resume covers every skill the job description asks for."
    gap = ", ".join(missing)
    if score >= 75:
        return f"Strong match. Consider highlighting: {gap}."
    if score >= 40:
        return f"Partial match. Close the gap on: {gap}."
    return f"Low match. The role expects: {gap}."


class ImprovementAdvisor(ABC):
    """Turns a skill gap into a prioritized improvement plan."""

    @abstractmethod
    async def advise(
        self,
        matched_skills: List[str],
        missing_skills: List[str],
        job_title: Optional[str] = None,
        company: Optional[str] = None,
    ) -> List[ImprovementItem]:
        ...


class FitScorer:
    def __init__(self, advisor: Optional[ImprovementAdvisor] = None):
        self.advisor = advisor

    @staticmethod
    def compare(cv_skills: Iterable[str], job_description: Optional[str]):
        """Returns (required, matched, missing), each in job-description order."""
        required = match_skills(job_description)
        cv = {skill.casefold() for skill in dedupe_skills(cv_skills)}
        matched = [skill for skill in required if skill.casefold() in cv]
        missing = [skill for skill in required if skill.casefold() not in cv]
        return required, matched, missing

    async def score(
        self,
        entities: ExtractedEntities,
        job_description: Optional[str] = None,
        job_title: Optional[str] = None,
        company: Optional[str] = None,
        correlation_id: str = "",
    ) -> AnalysisResult:
        if not job_description or not job_description.strip():
            return AnalysisResult(
                fit_score=0.0,
                resume_entities=entities,
                recommendation=NO_JOB_DESCRIPTION_RECOMMENDATION,
                job_title=job_title,
                company=company,
            )

        required, matched, missing = self.compare(entities.skills, job_description)
        fit_score = score_overlap(len(matched), len(required))
        logger.info(
            f"[{correlation_id}] Fit score {fit_score:.1f} "
            f"({len(matched)}/{len(required)} required skills matched)"
        )

        result = AnalysisResult(
            fit_score=fit_score,
            matched_skills=matched,
            missing_skills=missing,
            resume_entities=entities,
            recommendation=recommendation_for(fit_score, missing),
            job_description=job_description,
            job_title=job_title,
            company=company,
        )

        if self.advisor is not None:
            try:
                result.improvement_plan = await self.advisor.advise(matched, missing, job_title, company)
            except Exception as e:
                logger.error(f"[{correlation_id}] Improvement advisor failed: {e}")
                result.improvement_plan = [ImprovementItem(area="System", advice=ADVISOR_UNAVAILABLE_ADVICE)]

        return result
