"""Shared test fixtures: scripted model and image clients, sample projects.

The fake model client plays back canned responses in order and records
every request, so orchestrator and tool tests run without the network.
"""

from __future__ import annotations

from hwforge.agent.context import ToolContext
from hwforge.agent.models import OrchestratorCallbacks, OrchestratorMode, OrchestratorState
from hwforge.catalog import Block, BlockTap, load_catalog
from hwforge.llm import ChatResponse, ConversationMessage, ToolCall, ToolChatResponse
from hwforge.project import (
    BoardLayout, FinalSpec, IOEntry, NetAssignment, PlacedBlock, PowerSpec,
    ProjectSpec, Size,
)


# ── Fake clients ───────────────────────────────────────────────────

class FakeModelClient:
    """Returns scripted responses; an Exception in a script is raised."""

    def __init__(self, chat_responses=None, tool_responses=None):
        self.chat_responses = list(chat_responses or [])
        self.tool_responses = list(tool_responses or [])
        self.chat_calls: list[dict] = []
        self.tool_calls: list[dict] = []

    async def chat(self, messages, temperature=0.3, max_tokens=None):
        self.chat_calls.append({"messages": list(messages), "temperature": temperature,
                                "max_tokens": max_tokens})
        if not self.chat_responses:
            raise RuntimeError("FakeModelClient: chat script exhausted")
        item = self.chat_responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return ChatResponse(content=item, model="fake")

    async def chat_with_tools(self, messages, tools, temperature=0.3, max_tokens=None,
                              thinking=None):
        self.tool_calls.append({"messages": list(messages), "tools": tools,
                                "temperature": temperature, "thinking": thinking})
        if not self.tool_responses:
            raise RuntimeError("FakeModelClient: tool script exhausted")
        item = self.tool_responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeImageClient:
    """Returns a URL per prompt; prompts containing a ``fail_on`` word raise."""

    def __init__(self, fail_on: tuple[str, ...] = ()):
        self.fail_on = fail_on
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if any(word in prompt for word in self.fail_on):
            raise RuntimeError(f"image failed: {prompt}")
        return f"https://images.test/{len(self.prompts)}.png"


def tool_turn(*calls: tuple[str, dict], content: str = "") -> ToolChatResponse:
    """One model turn requesting ``calls`` as (name, args) pairs."""
    return ToolChatResponse(
        content=content,
        tool_calls=[ToolCall(id=f"call_{i}_{name}", name=name, arguments=args)
                    for i, (name, args) in enumerate(calls)],
        finish_reason="tool_calls",
    )


def text_turn(content: str) -> ToolChatResponse:
    return ToolChatResponse(content=content, finish_reason="stop")


# ── Catalog ────────────────────────────────────────────────────────

def standard_catalog() -> list[Block]:
    """The repository's catalog/*.json blocks."""
    return load_catalog().blocks


def tiny_catalog() -> list[Block]:
    """MCU, USB power and an environmental sensor only."""
    return [
        Block(slug="mcu-esp32c6", name="MCU", category="mcu", description="ESP32-C6",
              width_units=2, height_units=2,
              taps=[BlockTap("I2C0_SDA", "GPIO6"), BlockTap("I2C0_SCL", "GPIO7"),
                    BlockTap("LED_BUILTIN", "GPIO8")]),
        Block(slug="power-usb", name="USB-C", category="power", description="USB-C input",
              width_units=1, height_units=1, taps=[BlockTap("VBUS")]),
        Block(slug="sensor-bme280", name="BME280", category="sensor", description="Environment",
              width_units=1, height_units=1, taps=[BlockTap("I2C0_SDA", "GPIO6")],
              i2c_addresses=["0x76"]),
    ]


# ── Projects ───────────────────────────────────────────────────────

def sample_final_spec(**overrides) -> FinalSpec:
    data = dict(
        name="ThermoCube",
        summary="A desk thermometer with a status LED",
        inputs=[IOEntry(type="Button", count=2)],
        outputs=[IOEntry(type="Temperature"), IOEntry(type="WS2812B LEDs", count=4)],
        power=PowerSpec(source="USB-C"),
        locked=True,
    )
    data.update(overrides)
    return FinalSpec(**data)


def sample_board() -> BoardLayout:
    return BoardLayout(
        placed_blocks=[
            PlacedBlock(block_slug="mcu-esp32c6", grid_x=0, grid_y=0),
            PlacedBlock(block_slug="power-usb", grid_x=2, grid_y=0),
            PlacedBlock(block_slug="sensor-bme280", grid_x=3, grid_y=0),
        ],
        board_size=Size(width=50.8, height=38.1),
        net_list=[
            NetAssignment(net="I2C0_SDA", gpio="GPIO6", block_slug="mcu-esp32c6"),
            NetAssignment(net="I2C0_SCL", gpio="GPIO7", block_slug="mcu-esp32c6"),
        ],
    )


def sample_project(with_board: bool = True) -> ProjectSpec:
    project = ProjectSpec(description="A desk thermometer with a status LED")
    project.final_spec = sample_final_spec()
    if with_board:
        project.board = sample_board()
    return project


# ── Context ────────────────────────────────────────────────────────

class Recorder:
    """Callbacks that remember what they were called with."""

    def __init__(self):
        self.patches: list[dict] = []
        self.states: list[OrchestratorState] = []
        self.completed: list[OrchestratorState] = []
        self.errors: list[Exception] = []

    async def on_spec_update(self, partial: dict) -> None:
        self.patches.append(partial)

    def callbacks(self, user_input=None) -> OrchestratorCallbacks:
        return OrchestratorCallbacks(
            on_state_change=self.states.append,
            on_spec_update=self.on_spec_update,
            on_complete=self.completed.append,
            on_error=self.errors.append,
            on_user_input_required=user_input,
        )


def make_context(project: ProjectSpec | None = None, client=None, *,
                 mode: OrchestratorMode = OrchestratorMode.VIBE_IT,
                 catalog: list[Block] | None = None, image_client=None,
                 recorder: Recorder | None = None, user_input=None) -> ToolContext:
    recorder = recorder or Recorder()
    return ToolContext(
        project_id="test",
        mode=mode,
        project=project or ProjectSpec(description="A desk thermometer"),
        state=OrchestratorState(project_id="test", mode=mode),
        client=client or FakeModelClient(),
        catalog=catalog if catalog is not None else standard_catalog(),
        image_client=image_client,
        callbacks=recorder.callbacks(user_input),
    )


def last_user_text(messages: list[ConversationMessage]) -> str:
    return next(m.content for m in reversed(messages) if m.role == "user")
