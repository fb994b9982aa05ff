"""Textual TUI for browsing, voting on and generating HumorAI captions."""
from __future__ import annotations

import asyncio

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Center, Container, Horizontal, Middle, VerticalScroll
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, LoadingIndicator, OptionList
from textual.widgets.option_list import Option

from humorai.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    NetworkError,
    StageFailure,
    ValidationError,
)
from humorai.humor import HumorAI
from humorai.models.caption import FeedItem
from humorai.models.pipeline import STEP_ORDER, PipelineStage, PipelineStep, StepStatus
from humorai.services.pipeline_service import UploadPipelineController
from humorai.services.vote_service import VoteToggleController
from humorai.utils.io import IOError as FileReadError
from humorai.utils.io import load_image_file

STEP_TITLES = {
    PipelineStep.PRESIGN: "Generate upload URL",
    PipelineStep.UPLOAD: "Upload image",
    PipelineStep.REGISTER: "Register image",
    PipelineStep.GENERATE: "Generate captions",
}

STATUS_ICONS = {
    StepStatus.PENDING: "○",
    StepStatus.ACTIVE: "…",
    StepStatus.DONE: "✓",
    StepStatus.ERROR: "✗",
}


def get_user_friendly_error(e: Exception) -> str:
    """Convert exception to user-friendly message."""
    if isinstance(e, AuthenticationError):
        return "Not signed in. Set HUMORAI_ACCESS_TOKEN and HUMORAI_USER_ID."
    elif isinstance(e, NetworkError):
        return "Network error. Please check your internet connection."
    elif isinstance(e, (ValidationError, StageFailure)):
        return escape(str(e))
    elif isinstance(e, ConfigurationError):
        return f"Configuration error: {escape(str(e))}"
    elif isinstance(e, APIError):
        return f"API error: {escape(str(e))}"
    else:
        return f"Error: {escape(str(e))}"


class MainMenuScreen(Screen):
    """Main menu with available actions."""

    BINDINGS = [
        Binding("q", "quit", "Quit"),
    ]

    @property
    def humor_app(self) -> HumorApp:
        """Get the app cast to HumorApp type."""
        return self.app  # type: ignore[return-value]

    def compose(self) -> ComposeResult:
        yield Header()
        voter = self.humor_app.humor.session.voter_id if self.humor_app.humor else None
        yield Container(
            Container(
                Label(f"Signed in as {voter}" if voter else "Not signed in", id="subtitle"),
                Label("Select an Action", id="title"),
                OptionList(
                    Option("Browse captions", id="feed"),
                    Option("Generate captions for an image", id="upload"),
                    Option("Exit", id="exit"),
                    id="action-list",
                ),
                classes="content-card",
            ),
            id="main-container",
        )
        yield Footer()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option.id == "feed":
            self.humor_app.push_screen(FeedScreen())
        elif event.option.id == "upload":
            self.humor_app.push_screen(UploadScreen())
        elif event.option.id == "exit":
            self.humor_app.exit()


class CaptionRow(Container):
    """One caption in the feed, with vote buttons when signed in."""

    def __init__(self, item: FeedItem, controller: VoteToggleController | None) -> None:
        super().__init__(classes="caption-row")
        self.item = item
        self.controller = controller

    def compose(self) -> ComposeResult:
        caption = self.item.caption
        yield Label(escape(caption.content), classes="caption-text")
        meta = caption.created_datetime_utc[:10]
        if caption.like_count > 0:
            meta += f"  ·  {caption.like_count} likes"
        with Horizontal(classes="caption-meta"):
            yield Label(meta, classes="caption-date")
            if self.controller and self.controller.session.voter_id:
                yield Button("▲", classes="upvote")
                yield Button("▼", classes="downvote")
            else:
                yield Label("Sign in to vote", classes="caption-date")

    def on_mount(self) -> None:
        self.refresh_buttons()

    def refresh_buttons(self) -> None:
        if not self.controller:
            return
        vote = self.controller.current_vote
        for button in self.query(Button):
            if button.has_class("upvote"):
                button.variant = "success" if vote == 1 else "default"
            else:
                button.variant = "error" if vote == -1 else "default"
            button.disabled = self.controller.busy

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        direction = 1 if event.button.has_class("upvote") else -1
        self.run_worker(self.vote(direction))

    async def vote(self, direction: int) -> None:
        if not self.controller:
            return
        task = asyncio.ensure_future(self.controller.cast_vote(direction))
        # Let the controller apply its optimistic value before drawing it
        await asyncio.sleep(0)
        self.refresh_buttons()
        await task
        self.refresh_buttons()
        if self.controller.last_error:
            self.app.notify("Vote failed, reverted.", severity="warning")


class FeedScreen(Screen):
    """Screen listing the newest captions."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
        Binding("r", "reload", "Reload"),
    ]

    @property
    def humor_app(self) -> HumorApp:
        """Get the app cast to HumorApp type."""
        return self.app  # type: ignore[return-value]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Label("Latest Captions", id="title"),
            Label("Loading...", id="feed-status"),
            VerticalScroll(id="feed"),
            id="feed-container",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.run_worker(self.load_feed(), exclusive=True)

    def action_reload(self) -> None:
        self.run_worker(self.load_feed(), exclusive=True)

    async def load_feed(self) -> None:
        status = self.query_one("#feed-status", Label)
        feed = self.query_one("#feed", VerticalScroll)
        humor = self.humor_app.humor
        if humor is None:
            return
        try:
            items = await humor.get_feed()
        except Exception as e:
            status.update(get_user_friendly_error(e))
            return

        await feed.remove_children()
        if not items:
            status.update("No captions found.")
            return
        status.update(f"{len(items)} captions")
        await feed.mount(*[CaptionRow(item, humor.vote_controller(item)) for item in items])

    def action_go_back(self) -> None:
        self.humor_app.pop_screen()


class UploadScreen(Screen):
    """Screen to upload an image and follow caption generation step by step."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.pipeline: UploadPipelineController | None = None

    @property
    def humor_app(self) -> HumorApp:
        """Get the app cast to HumorApp type."""
        return self.app  # type: ignore[return-value]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Container(
                Label("Generate Captions", id="title"),
                Input(placeholder="Path to a JPEG, PNG, WebP, GIF or HEIC image...", id="path-input"),
                Horizontal(
                    Button("Generate Captions", variant="primary", id="generate"),
                    Button("Clear", variant="default", id="clear"),
                    id="buttons",
                ),
                Container(
                    *[Label("", id=f"step-{step.value}", classes="step") for step in STEP_ORDER],
                    id="steps",
                ),
                Label("", id="stage-label"),
                Label("", id="error-label"),
                VerticalScroll(id="results"),
                classes="content-card",
            ),
            id="main-container",
        )
        yield Footer()

    def on_mount(self) -> None:
        humor = self.humor_app.humor
        if humor:
            self.pipeline = humor.new_pipeline()
        self.refresh_progress()

    def refresh_progress(self) -> None:
        if not self.pipeline:
            return
        for step in STEP_ORDER:
            status = self.pipeline.stage_status(step)
            label = self.query_one(f"#step-{step.value}", Label)
            label.update(f"{STATUS_ICONS[status]} {STEP_TITLES[step]}")
            label.set_classes(f"step step-{status.value}")
        self.query_one("#steps").display = self.pipeline.stage != PipelineStage.IDLE
        self.query_one("#stage-label", Label).update(self.pipeline.stage_label if self.pipeline.is_running else "")
        self.query_one("#error-label", Label).update(escape(self.pipeline.error or ""))
        running = self.pipeline.is_running
        self.query_one("#generate", Button).disabled = running
        self.query_one("#clear", Button).disabled = running
        self.query_one("#path-input", Input).disabled = running

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if not self.pipeline:
            return
        if event.button.id == "generate":
            path = self.query_one("#path-input", Input).value.strip()
            try:
                self.pipeline.select_file(load_image_file(path))
            except (ValidationError, FileReadError) as e:
                self.query_one("#error-label", Label).update(get_user_friendly_error(e))
                return
            self.run_worker(self.run_pipeline(), exclusive=True)
        elif event.button.id == "clear":
            self.pipeline.reset()
            self.query_one("#path-input", Input).value = ""
            self.run_worker(self.show_results(), exclusive=True)

    async def run_pipeline(self) -> None:
        if not self.pipeline:
            return
        await self.show_results()
        async for _ in self.pipeline.steps():
            self.refresh_progress()
        await self.show_results()

    async def show_results(self) -> None:
        self.refresh_progress()
        results = self.query_one("#results", VerticalScroll)
        await results.remove_children()
        if self.pipeline and self.pipeline.results:
            await results.mount(
                Label(f"Generated Captions ({len(self.pipeline.results)})", classes="results-title"),
                *[Label(escape(caption.content), classes="result") for caption in self.pipeline.results],
            )

    def action_go_back(self) -> None:
        if self.pipeline:
            self.pipeline.reset()
        self.humor_app.pop_screen()


class HumorApp(App):
    """Main Textual app for HumorAI."""

    CSS = """
    #main-container {
        width: 100%;
        height: 1fr;
        align: center middle;
        padding: 1 2;
    }

    .content-card {
        width: 80%;
        min-width: 60;
        max-width: 120;
        height: auto;
        padding: 2 3;
        border: round $primary;
        background: $surface;
    }

    #title {
        text-style: bold;
        text-align: center;
        margin-bottom: 1;
        width: 100%;
    }

    #subtitle, #feed-status, #stage-label {
        color: $text-muted;
        text-align: center;
        width: 100%;
    }

    #error-label {
        color: $error;
        width: 100%;
    }

    .loading-card {
        width: auto;
        min-width: 40;
        height: auto;
        padding: 3 5;
        border: round $primary;
        background: $surface;
        align: center middle;
    }

    #loading-text {
        text-align: center;
        color: $text-muted;
        margin-top: 1;
        width: 100%;
    }

    OptionList {
        border: round $border;
        height: auto;
        max-height: 20;
        width: 100%;
    }

    Input {
        border: round $border;
        width: 100%;
        margin-bottom: 1;
    }

    #buttons {
        width: 100%;
        height: auto;
        align: center middle;
        margin-bottom: 1;
    }

    #buttons Button {
        margin: 0 1;
        min-width: 16;
    }

    #steps {
        height: auto;
        margin: 1 0;
    }

    .step-pending { color: $text-muted; }
    .step-active { text-style: bold; }
    .step-done { color: $success; }
    .step-error { color: $error; }

    #results {
        height: auto;
        max-height: 20;
    }

    .result {
        background: $boost;
        padding: 1 2;
        margin-bottom: 1;
        width: 100%;
    }

    #feed-container {
        padding: 1 2;
    }

    .caption-row {
        height: auto;
        border: round $border;
        padding: 0 1;
        margin-bottom: 1;
    }

    .caption-meta {
        height: auto;
        align: left middle;
    }

    .caption-date {
        color: $text-muted;
        width: 1fr;
    }

    .caption-meta Button {
        min-width: 5;
        margin-left: 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.humor: HumorAI | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Center(
            Middle(
                Container(
                    LoadingIndicator(id="spinner"),
                    Label("Starting HumorAI...", id="loading-text"),
                    classes="loading-card",
                )
            ),
            id="main-container",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.title = "HumorAI"
        self.run_worker(self.initialize(), exclusive=True)

    async def initialize(self) -> None:
        try:
            self.humor = HumorAI()
            try:
                self.humor.use_session()
            except ValueError:
                # Browsing works signed out; voting and uploads will say so
                pass
            self.push_screen(MainMenuScreen())
        except Exception as e:
            self.query_one("#loading-text", Label).update(get_user_friendly_error(e))
            self.query_one("#spinner", LoadingIndicator).display = False

    async def on_unmount(self) -> None:
        if self.humor:
            await self.humor.close()


def main() -> None:
    app = HumorApp()
    app.run()


if __name__ == "__main__":
    main()
