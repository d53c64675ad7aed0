from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv

from .agent import Agent, AgentRunConfig
from .llm import BackendError, OllamaClient


logger = logging.getLogger(__name__)


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() not in {"0", "false", "no", "off"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MiniAgent terminal runner")
    parser.add_argument("task", nargs="?", default="", help="Task to run; omit for interactive mode.")
    parser.add_argument("--model", default=os.getenv("AI_MODEL", "zephyr"))
    parser.add_argument("--ollama-url", default=os.getenv("AI_OLLAMA_URL", "http://127.0.0.1:11434"))
    parser.add_argument("--max-length", type=int, default=os.getenv("AI_MAX_LENGTH", "4000"))
    parser.add_argument("--max-iterations", type=int, default=os.getenv("AI_MAX_ITERATIONS", "16"))
    parser.add_argument(
        "--clarify-intent",
        default=os.getenv("AI_CLARIFY_INTENT", "1"),
        help="Rewrite the task through the model before the loop starts (1/0).",
    )
    parser.add_argument("--pull", action="store_true", help="Pull the model before running.")
    parser.add_argument("--log-level", default=os.getenv("AI_LOG_LEVEL", "INFO"))
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    llm = OllamaClient(model=args.model, base_url=args.ollama_url)
    if args.pull:
        try:
            llm.pull_model()
        except BackendError as exc:
            logger.error("Error pulling model: %s", exc)

    status = llm.status()
    if not status.available:
        logger.error("Model unavailable: %s", status.reason or "Ollama model unavailable")
        return 1
    if status.reason:
        logger.warning(status.reason)

    config = AgentRunConfig(
        max_length=args.max_length,
        max_iterations=args.max_iterations,
        clarify_intent=_as_bool(args.clarify_intent),
    )
    agent = Agent(llm=llm, config=config)

    if args.task:
        try:
            print(agent.run(args.task))
        except BackendError as exc:
            print(f"error> {exc}")
            return 1
        return 0

    print("MiniAgent terminal mode. Type 'exit' to quit.")
    while True:
        user = input("you> ").strip()
        if not user:
            continue
        if user.lower() in {"exit", "quit"}:
            break

        try:
            answer = agent.run(user)
        except BackendError as exc:
            print(f"error> {exc}")
            continue

        print(f"ai[{agent.state.value}]> {answer}")
        if agent.events:
            print("tools>")
            for event in agent.events:
                print(f"  - [{event.status}] {event.tool}: {event.detail}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
