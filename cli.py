# cli.py
import argparse
import asyncio
import json
from pathlib import Path

from resume_insight.api.deps import build_services
from resume_insight.config import get_settings
from resume_insight.schemas.chat import ChatRequest
from resume_insight.schemas.extraction import UploadEvent
from resume_insight.schemas.resume import AnalyzeRequest
from resume_insight.services.pipeline.forwarder import ANONYMOUS_USER
from resume_insight.utils.log_config import configure_logging


async def run(args) -> None:
    source = Path(args.input).resolve()
    if not source.is_file():
        raise SystemExit(f"No such file: {source}")

    # The file's directory acts as the bucket
    settings = get_settings().model_copy(update={"STORAGE_ROOT": str(source.parent.parent)})
    services = build_services(settings, in_process_analyzer=True)
    bucket, key = source.parent.name, source.name

    if args.mode == "extract":
        services.validator.validate(key, source.stat().st_size)
        result = await services.ingestion.orchestrator.process(bucket, key)
        if not result.success:
            raise SystemExit(f"Extraction failed: {result.error_message}")
        print(result.text[:2000])
        return

    payloads = await services.ingestion.handle_event(UploadEvent.for_object(bucket, key))
    resume_id = payloads[0].resume_id
    job_description = Path(args.jd).read_text(encoding="utf8") if args.jd else None

    if args.mode == "analyze":
        if job_description:
            response = await services.analysis_stage.analyze(
                AnalyzeRequest(resume_id=resume_id, job_description=job_description, job_title=args.title),
                ANONYMOUS_USER,
            )
            print(json.dumps(response.model_dump(mode="json", by_alias=True), indent=2))
        else:
            profile = services.profiles.get(resume_id)
            print(json.dumps(profile.model_dump(mode="json", by_alias=True, exclude={"resume_text"}), indent=2))
    elif args.mode == "chat":
        if not args.message:
            raise SystemExit("Provide --message for chat mode")
        if job_description:
            await services.analysis_stage.analyze(
                AnalyzeRequest(resume_id=resume_id, job_description=job_description, job_title=args.title),
                ANONYMOUS_USER,
            )
        reply = await services.chat_service.chat(
            ChatRequest(resume_id=resume_id, user_message=args.message), ANONYMOUS_USER
        )
        print(reply.ai_message)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--mode", choices=["extract", "analyze", "chat"], required=True)
    parser.add_argument("--input", required=True, help="resume file (.pdf or .docx)")
    parser.add_argument("--jd", help="job description .txt file (analyze/chat modes)")
    parser.add_argument("--title", help="job title for the analysis session")
    parser.add_argument("--message", help="question for the assistant (chat mode)")

    args = parser.parse_args()
    configure_logging(get_settings().LOG_LEVEL)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
