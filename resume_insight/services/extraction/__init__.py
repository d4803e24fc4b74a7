from . import base, docx_extractor, normalizer, pdf_extractor, preprocess, processor, validator

__all__ = ["base", "docx_extractor", "normalizer", "pdf_extractor", "preprocess", "processor", "validator"]
