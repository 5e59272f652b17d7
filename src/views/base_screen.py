from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import LoginRequestedMessage, LogoutRequestedMessage
from utils.pure import generate_markdown_table, humanize_enum
from views.modal_dialog import ConfirmDialogModal, QuitDialogModal, ResizeScreenPromptModal


class Sidebar(Container):
    """User info, login/logout and the role dependent menu."""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Button("Log in", id="btn-login", variant="primary")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    def on_mount(self):
        self.populate()

    @work(exclusive=True, group="sidebar")
    async def populate(self) -> None:
        session = self.app.session
        identity = session.identity

        if identity:
            rows = [
                ["User", identity.username],
                ["Email", identity.email],
                ["Role", humanize_enum(identity.role.value)],
            ]
            if not session.is_admin:
                rows.append(["Cart", f"{self.app.cart.item_count} item(s)"])
        else:
            rows = [["User", "Guest"]]
        md_table_str = generate_markdown_table(None, rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)

        self.query_one("#btn-logout").display = identity is not None
        self.query_one("#btn-login").display = identity is None

        # items are keyed by name, not id, so an overlapping refresh can't clash
        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(label), name=mode)
                for mode, label in self.app.menu_for_session().items()
            ]
        )
        self.highlight_item(self.app.current_mode)

    def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.name
        self.highlight_item(self.app.current_mode)
        if selected_mode and self.app.current_mode != selected_mode:
            self.app.navigate(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            ConfirmDialogModal("Are you sure you want to log out?")
        ):
            return
        self.post_message(LogoutRequestedMessage())

    @on(Button.Pressed, "#btn-login")
    def handle_login(self):
        self.post_message(LoginRequestedMessage())

    def highlight_item(self, mode_str: str):
        for item in self.query_one("#list-menu").children:
            item.highlighted = item.name == mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    MIN_WIDTH = 80
    MIN_HEIGHT = 24

    def __init__(self):
        super().__init__()
        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        self.app.title = "KeebShop"
        self.sub_title = header_sub_title
        for mode, screen_cls in self.app.MODES.items():
            if type(self) is screen_cls:
                self.sub_title = self.app.MODE_TITLES.get(mode, header_sub_title)
        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        if event.size.width < self.MIN_WIDTH or event.size.height < self.MIN_HEIGHT:
            self.app.push_screen(ResizeScreenPromptModal(self.MIN_WIDTH, self.MIN_HEIGHT))

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.sync_state()

    def sync_state(self) -> None:
        """
        Called by the App after session or cart changes, and on resume.
        Screens extend it to reload their own content.
        """
        for sidebar in self.query(Sidebar):
            sidebar.populate()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
