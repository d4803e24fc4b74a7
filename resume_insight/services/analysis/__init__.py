from . import entity_extractor, fit_scorer, skills

__all__ = ["entity_extractor", "fit_scorer", "skills"]
