"""Unit tests for interstitial dismissal, using a fake Playwright page."""

from playwright.async_api import Error as PlaywrightError

from scorereview.acquisition.gate import dismiss_gate


class FakeControl:
    def __init__(self, visible: bool, click_error: bool = False):
        self.visible = visible
        self.click_error = click_error
        self.clicked = False

    @property
    def first(self) -> "FakeControl":
        return self

    async def wait_for(self, state: str, timeout: float) -> None:
        if not self.visible:
            raise PlaywrightError(f"Timeout {timeout}ms exceeded waiting for {state}")

    async def click(self) -> None:
        if self.click_error:
            raise PlaywrightError("Element is detached")
        self.clicked = True


class FakePage:
    def __init__(self, controls: dict[str, FakeControl]):
        self.controls = controls
        self.waited_ms: list[int] = []

    def locator(self, selector: str, has_text: str) -> FakeControl:
        return self.controls.get(has_text, FakeControl(visible=False))

    async def wait_for_timeout(self, ms: int) -> None:
        self.waited_ms.append(ms)


class TestDismissGate:
    async def test_clicks_visible_control(self):
        control = FakeControl(visible=True)
        page = FakePage({"I understand": control})

        assert await dismiss_gate(page, timeout=0.1) is True
        assert control.clicked
        assert page.waited_ms == [1000]

    async def test_missing_control_is_not_an_error(self):
        page = FakePage({})
        assert await dismiss_gate(page, timeout=0.1) is False
        assert page.waited_ms == []

    async def test_tries_labels_in_order(self):
        accept = FakeControl(visible=True)
        page = FakePage({"Accept": accept})

        assert await dismiss_gate(page, labels=("I understand", "Accept"), timeout=0.1)
        assert accept.clicked

    async def test_click_failure_returns_false(self):
        page = FakePage({"I understand": FakeControl(visible=True, click_error=True)})
        assert await dismiss_gate(page, timeout=0.1) is False
