from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .capabilities import CapabilityRegistry, default_registry
from .messages import ConversationLog
from .oracle import LengthOracle
from .parser import ActionParseError, parse_action
from .prompt import ContentNode, assemble, node
from .summarize import TextGenerator, infer_intent


logger = logging.getLogger(__name__)

SYSTEM_TEXT = (
    "<|system|>You are an AI Assistant.\n"
    "This is a friendly conversation between Human and AI.\n"
    "Your primary role is to answer questions and provide assistance.\n"
    "Output should only include one function as the next step using the format:\n"
    "Function: name of the function\n"
    "Input: Function Input as text\n"
    "Reasoning: Reason to choose the Function and Input\n"
    "Criticism: Self critic of the current action\n"
)
PARSE_FAILURE_NOTE = "Error parsing output."
ITERATION_LIMIT_NOTE = "Iteration limit reached."
MAX_ITERATIONS_CAP = 256


class AgentState(str, Enum):
    START = "start"
    ITERATING = "iterating"
    TERMINAL = "terminal"
    ABORTED = "aborted"


@dataclass
class ToolEvent:
    tool: str
    status: str
    detail: str


@dataclass
class AgentRunConfig:
    max_length: int = 4000
    max_iterations: int = 16
    clarify_intent: bool = True
    terminal_action: str = "Finish"


class Agent:
    def __init__(
        self,
        llm: TextGenerator,
        registry: CapabilityRegistry | None = None,
        oracle: LengthOracle | None = None,
        config: AgentRunConfig | None = None,
        history: ConversationLog | None = None,
        system_text: str = SYSTEM_TEXT,
    ) -> None:
        self.llm = llm
        self.oracle = oracle
        self.config = config or AgentRunConfig()
        self.history = history if history is not None else ConversationLog()
        self.system_text = system_text
        self.topic = ""
        if registry is None:
            registry = default_registry(llm, topic=lambda: self.topic)
        self.registry = registry
        self.state = AgentState.START
        self.iterations = 0
        self.events: list[ToolEvent] = []

    def build_tree(self) -> ContentNode:
        history = self.history
        registry = self.registry
        system_text = self.system_text

        def system_description(_: str, __: int) -> str:
            return system_text

        def long_term_memory(_: str, __: int) -> str:
            return ""

        def short_term_memory(_: str, __: int) -> str:
            return f"Conversation:\n{history.render()}\n"

        def functions(_: str, __: int) -> str:
            return registry.describe_all()

        def asking(input_text: str, _: int) -> str:
            return f"</s><|user|>{input_text}\n</s><|assistant|>"

        return node(
            "root",
            0,
            None,
            node("system", 1, system_description),
            node(
                "memories",
                2,
                None,
                node("ltm_optional", 1, None, node("ltm", 1, long_term_memory)),
                node("stm", 2, short_term_memory),
            ),
            node("functions_optional", 3, None, node("functions", 1, functions)),
            node("asking", 4, asking),
        )

    def generate_prompt(self, input_text: str, config: AgentRunConfig | None = None) -> str:
        cfg = config or self.config
        return assemble(self.build_tree(), input_text, cfg.max_length, self.oracle)

    def run(self, user_text: str, config: AgentRunConfig | None = None) -> str:
        """Drive the model until it calls the terminal action or its output stops parsing.

        Returns the best answer gathered so far: the latest non-empty action
        input or capability result.
        """
        cfg = config or self.config
        max_iterations = max(1, min(int(cfg.max_iterations), MAX_ITERATIONS_CAP))

        self.state = AgentState.START
        self.iterations = 0
        self.events = []
        self.topic = user_text
        self.history.add_human(user_text)

        working_input = infer_intent(self.llm, user_text) if cfg.clarify_intent else user_text
        answer = ""
        self.state = AgentState.ITERATING

        while self.state is AgentState.ITERATING:
            if self.iterations >= max_iterations:
                logger.warning("Stopping after %d iterations without %s", self.iterations, cfg.terminal_action)
                self.history.add_action_result(ITERATION_LIMIT_NOTE)
                self.events.append(ToolEvent("loop", "error", ITERATION_LIMIT_NOTE))
                self.state = AgentState.ABORTED
                break
            self.iterations += 1

            prompt = self.generate_prompt(working_input, cfg)
            logger.debug("Prompt for iteration %d:\n%s", self.iterations, prompt)
            response = self.llm.generate(prompt)

            try:
                action = parse_action(response)
            except ActionParseError as exc:
                logger.warning("Error parsing output: %s", exc)
                self.history.add_action_result(PARSE_FAILURE_NOTE)
                self.events.append(ToolEvent("parse", "error", str(exc)))
                self.state = AgentState.ABORTED
                break

            logger.info("Function: %s | Input: %s | Reasoning: %s", action.name, action.input, action.reasoning)
            capability = self.registry.resolve(action.name)
            result = capability.invoke(action.input)

            if action.input:
                answer = action.input
            if result:
                answer = result
                self.history.add_action_result(result, action_name=capability.name)

            status = "ok" if capability.name.lower() == action.name.strip().lower() else "fallback"
            self.events.append(ToolEvent(capability.name, status, f"{action.name}: {action.input}"))

            if action.name == cfg.terminal_action:
                self.state = AgentState.TERMINAL

        self.history.add_ai(answer)
        return answer
