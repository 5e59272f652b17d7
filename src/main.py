from typing import Dict, Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from api.client import ApiClient
from api.errors import SessionInvalidError
from db.storage import SessionStorage
from state.cart import CartState
from state.gate import Access, Verdict, admit, landing_mode
from state.session import SessionStore
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    LoginRequestedMessage,
    LogoutRequestedMessage,
    NewOrderMessage,
    QuitRequestedMessage,
    SessionChangedMessage,
    SessionInvalidMessage,
)
from views.base_screen import BaseScreen
from views.scr_admin_dashboard import AdminDashboardScreen
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_cart import CartScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_products import ProductsScreen
from views.scr_profile import ProfileScreen

_logger = get_logger(__name__)


class KeebShopApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "products": ProductsScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
        "profile": ProfileScreen,
        "admin_dashboard": AdminDashboardScreen,
        "admin_products": AdminProductsScreen,
        "admin_orders": AdminOrdersScreen,
    }

    MODE_ACCESS = {
        "products": Access.PUBLIC,
        "cart": Access.CONSUMER,
        "orders": Access.AUTHENTICATED,
        "profile": Access.AUTHENTICATED,
        "admin_dashboard": Access.ADMIN,
        "admin_products": Access.ADMIN,
        "admin_orders": Access.ADMIN,
    }

    MODE_TITLES = {
        "products": "Keyboards",
        "cart": "Cart",
        "orders": "My Orders",
        "profile": "Profile",
        "admin_dashboard": "Admin Dashboard",
        "admin_products": "Manage Products",
        "admin_orders": "Manage Orders",
    }

    GUEST_MODES = ("products",)
    CUSTOMER_MODES = ("products", "cart", "orders", "profile")
    ADMIN_MODES = ("admin_dashboard", "products", "admin_products", "admin_orders", "profile")

    CSS_PATH = "styles/app.tcss"

    def __init__(
        self,
        storage: Optional[SessionStorage] = None,
        client: Optional[ApiClient] = None,
    ):
        super().__init__()
        # wiring order matters: the store and the cart hook into the client
        # and the store before the app does, so they settle first
        self.storage = storage or SessionStorage()
        self.client = client or ApiClient(self.storage)
        self.session = SessionStore(self.client, self.storage)
        self.cart = CartState(self.client, self.session)

        self.client.add_session_invalid_listener(self._on_session_invalid)
        self.session.subscribe(self._on_session_changed)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    async def on_unmount(self) -> None:
        await self.client.aclose()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def menu_for_session(self) -> Dict[str, str]:
        if not self.session.is_authenticated:
            modes = self.GUEST_MODES
        elif self.session.is_admin:
            modes = self.ADMIN_MODES
        else:
            modes = self.CUSTOMER_MODES
        titles = dict(self.MODE_TITLES)
        if "cart" in modes and self.cart.item_count:
            titles["cart"] = f"Cart ({self.cart.item_count})"
        return {mode: titles[mode] for mode in modes}

    # ---------------------------
    # navigation
    # ---------------------------

    @work
    async def main_flow(self):
        await self.session.initialize()
        self.navigate(landing_mode(self.session.role))

    @work(group="navigation")
    async def navigate(self, mode: str) -> None:
        """Every mode switch passes through the admission gate."""
        admission = admit(self.session.status, self.session.role, self.MODE_ACCESS[mode])

        if admission.verdict == Verdict.LOADING:
            return
        if admission.verdict == Verdict.LOGIN:
            self.request_login(then=mode)
            return
        if admission.verdict == Verdict.REDIRECT:
            mode = admission.redirect

        if self.current_mode != mode:
            await self.switch_mode(mode)

    @work(exclusive=True, group="login")
    async def request_login(self, then: Optional[str] = None) -> None:
        if isinstance(self.screen, LoginScreen):
            return
        if await self.push_screen_wait(LoginScreen()):
            self.navigate(then or landing_mode(self.session.role))
        elif self.MODE_ACCESS.get(self.current_mode) != Access.PUBLIC:
            # backed out while sitting on a screen that needs a session
            self.navigate(landing_mode(self.session.role))

    # ---------------------------
    # state change plumbing
    # ---------------------------

    async def _on_session_changed(self, _session: SessionStore) -> None:
        self.post_message(SessionChangedMessage())

    async def _on_session_invalid(self, _error: SessionInvalidError) -> None:
        self.post_message(SessionInvalidMessage())

    def _sync_screen(self) -> None:
        if isinstance(self.screen, BaseScreen):
            self.screen.sync_state()

    @on(SessionChangedMessage)
    @on(CartChangedMessage)
    @on(NewOrderMessage)
    def handle_state_changed(self) -> None:
        self._sync_screen()

    @on(SessionInvalidMessage)
    def handle_session_invalid(self) -> None:
        self.notify("Your session has expired. Please log in again.", severity="warning")
        self.request_login(then=self.current_mode if self.current_mode in self.MODES else None)

    @on(LoginRequestedMessage)
    def handle_login_requested(self) -> None:
        self.request_login()

    @on(LogoutRequestedMessage)
    @work
    async def handle_user_logout(self):
        await self.session.logout()
        self.notify("Logout successful.")
        self.navigate(landing_mode(None))

    @on(QuitRequestedMessage)
    def handle_quit(self):
        # the session persists across runs, so quitting doesn't log out
        self.exit()


def run() -> None:
    KeebShopApp().run()


if __name__ == "__main__":
    run()
