from datetime import date
from typing import Optional

import httpx
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label, Select

from api.errors import ApiError
from api.models import ProfileUpdate
from views.base_screen import BaseScreen

GENDERS = [("Male", "male"), ("Female", "female"), ("Other", "other")]


def _parse_dob(raw: str) -> Optional[str]:
    """YYYY-MM-DD in the past, or None when invalid."""
    try:
        dob = date.fromisoformat(raw.strip())
    except ValueError:
        return None
    return dob.isoformat() if dob <= date.today() else None


class ProfileScreen(BaseScreen):
    """View and edit the signed in user's profile."""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-profile"):
            yield Label("", id="label-profile-account")
            yield Label("Display Name")
            yield Input(id="input-display-name")
            yield Label("Gender")
            yield Select(GENDERS, prompt="Prefer not to say", id="select-gender")
            yield Label("Date of Birth (YYYY-MM-DD)")
            yield Input(placeholder="1990-01-31", id="input-dob")
            yield Label("Address")
            yield Input(id="input-address")
            yield Label("Phone Number")
            yield Input(id="input-phone")
            with Horizontal(id="div-profile-btns"):
                yield Button("Reload", id="btn-reload")
                yield Button("Save", id="btn-save", variant="primary")

    def sync_state(self) -> None:
        super().sync_state()
        self.load_profile()

    @on(Button.Pressed, "#btn-reload")
    @work(exclusive=True, group="profile")
    async def load_profile(self) -> None:
        if not self.app.session.is_authenticated:
            return
        try:
            profile = await self.app.client.get_profile()
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to load profile: {e}", severity="error")
            return

        self.query_one("#label-profile-account", Label).update(
            f"{profile.username}  <{profile.email}>"
        )
        self.query_one("#input-display-name", Input).value = profile.display_name
        gender = self.query_one("#select-gender", Select)
        if profile.gender in {value for _, value in GENDERS}:
            gender.value = profile.gender
        else:
            gender.clear()
        self.query_one("#input-dob", Input).value = profile.date_of_birth or ""
        self.query_one("#input-address", Input).value = profile.address or ""
        self.query_one("#input-phone", Input).value = profile.phone_number or ""

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True, group="profile")
    async def handle_save(self) -> None:
        display_name = self.query_one("#input-display-name", Input).value.strip()
        if not display_name:
            self.query_one("#input-display-name", Input).add_class("-invalid")
            self.notify("Display name is required.", severity="error")
            return

        raw_dob = self.query_one("#input-dob", Input).value
        dob = _parse_dob(raw_dob) if raw_dob.strip() else None
        if raw_dob.strip() and dob is None:
            self.query_one("#input-dob", Input).add_class("-invalid")
            self.notify("Date of birth must be a past date, YYYY-MM-DD.", severity="error")
            return

        gender = self.query_one("#select-gender", Select).value
        update = ProfileUpdate(
            display_name=display_name,
            gender=gender if isinstance(gender, str) else None,
            date_of_birth=dob,
            address=self.query_one("#input-address", Input).value.strip() or None,
            phone_number=self.query_one("#input-phone", Input).value.strip() or None,
        )
        try:
            await self.app.client.update_profile(update)
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to update profile: {e}", severity="error")
            return
        self.notify("Profile updated successfully.")
        self.load_profile()
