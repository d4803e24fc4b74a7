import logging
from typing import List, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_ollama import OllamaLLM

from ...schemas.resume import ImprovementItem
from ..analysis.fit_scorer import ImprovementAdvisor
from .clients import parse_json_output

logger = logging.getLogger("improver")

IMPROVEMENT_TEMPLATE = """
You are an expert AI resume coach. Given how a candidate's skills line up
against a job description, write a concise, prioritized improvement plan.
- Start with the missing skills that matter most for the role.
- Suggest how to surface the matched skills more convincingly (metrics, context, projects).
- Recommend concrete learning steps for each gap.

Target Role: {job_title}
Company: {company}
Matched Skills: {matched_skills}
Missing Skills: {missing_skills}

Respond with ONLY a JSON array of 3 to 5 items, no prose, each shaped like:
{{"area": "<short heading>", "advice": "<one or two sentences>"}}
"""


class OllamaImprovementAdvisor(ImprovementAdvisor):
    def __init__(self, model_id: str, base_url: Optional[str] = None):
        llm = OllamaLLM(model=model_id, base_url=base_url)
        self.chain = PromptTemplate.from_template(IMPROVEMENT_TEMPLATE) | llm | StrOutputParser()

    async def advise(
        self,
        matched_skills: List[str],
        missing_skills: List[str],
        job_title: Optional[str] = None,
        company: Optional[str] = None,
    ) -> List[ImprovementItem]:
        raw = await self.chain.ainvoke({
            "job_title": job_title or "Not specified",
            "company": company or "Not specified",
            "matched_skills": ", ".join(matched_skills) or "None",
            "missing_skills": ", ".join(missing_skills) or "None",
        })
        logger.debug(f"Raw improvement plan (trunc): {raw[:500]}")

        items = parse_json_output(raw)
        if not isinstance(items, list):
            raise ValueError("Improvement advisor did not return a JSON array")

        plan = [
            ImprovementItem(area=str(item["area"]), advice=str(item["advice"]))
            for item in items
            if isinstance(item, dict) and item.get("area") and item.get("advice")
        ]
        if not plan:
            raise ValueError("Improvement advisor returned no usable items")
        return plan
