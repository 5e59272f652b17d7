import httpx
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from api.errors import ApiError
from utils.validation import (
    RegistrationForm,
    ValidationError,
    validate_login,
    validate_registration,
)
from views.base_screen import BaseScreen

# validation field -> input id
_REG_INPUTS = {
    "first_name": "#input-reg-first",
    "last_name": "#input-reg-last",
    "username": "#input-reg-username",
    "email": "#input-reg-email",
    "password": "#input-reg-pwd",
    "confirm_password": "#input-reg-pwd2",
}


class LoginScreen(BaseScreen):
    """
    Login and sign up tabs. Dismisses True once a session is established,
    False if the user backs out.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Username")
                    yield Input(placeholder="keeb_fan", id="input-login-username")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Back", id="btn-back")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    with Horizontal(id="div-reg-names"):
                        with Vertical():
                            yield Label("First Name")
                            yield Input(placeholder="Jane", id="input-reg-first")
                        with Vertical():
                            yield Label("Last Name")
                            yield Input(placeholder="Doe", id="input-reg-last")
                    yield Label("Username (3-50 characters)")
                    yield Input(placeholder="keeb_fan", id="input-reg-username")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Password (at least 6 characters)")
                    yield Input(placeholder="*********", password=True, id="input-reg-pwd")
                    yield Label("Confirm Password")
                    yield Input(placeholder="*********", password=True, id="input-reg-pwd2")
                    with Horizontal(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-username").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "escape":
            self.dismiss(False)
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd2"):
            self.handle_registration_submit()

    def on_input_changed(self, message: Input.Changed) -> None:
        # typing clears the error mark on that field
        if message.value:
            message.input.remove_class("-invalid")

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        username = self.query_one("#input-login-username", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if validate_login(username, pwd):
            self.notify("Username or password cannot be empty!", severity="error")
            return

        try:
            identity = await self.app.session.login(username, pwd)
        except ApiError as e:
            self.notify(e.message or "Invalid username or password.", severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return
        except httpx.HTTPError as e:
            self.notify(f"Could not reach the shop: {e}", severity="error")
            return

        self.notify(f"Hello {identity.username}!")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        form = RegistrationForm(
            username=self.query_one("#input-reg-username", Input).value,
            email=self.query_one("#input-reg-email", Input).value,
            password=self.query_one("#input-reg-pwd", Input).value,
            confirm_password=self.query_one("#input-reg-pwd2", Input).value,
            first_name=self.query_one("#input-reg-first", Input).value,
            last_name=self.query_one("#input-reg-last", Input).value,
        )

        errors = validate_registration(form)
        if errors:
            self._mark_invalid(errors)
            return

        try:
            identity = await self.app.session.register(form)
        except ValidationError as e:
            self._mark_invalid(e.errors)
            return
        except ApiError as e:
            self.notify(
                e.message or "Registration failed. Please try again.", severity="error"
            )
            return
        except httpx.HTTPError as e:
            self.notify(f"Could not reach the shop: {e}", severity="error")
            return

        self.notify(f"Welcome aboard, {identity.username}!")
        self.dismiss(True)

    def _mark_invalid(self, errors: dict) -> None:
        first = None
        for field, selector in _REG_INPUTS.items():
            if field in errors:
                widget = self.query_one(selector, Input)
                widget.add_class("-invalid")
                first = first or widget
        if first:
            first.focus()
        self.notify("\n".join(errors.values()), severity="error")

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self.dismiss(False)
