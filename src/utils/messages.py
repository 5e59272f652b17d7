from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class LogoutRequestedMessage(Message):
    """
    posted by the sidebar when the user confirms logging out
    """

    bubble = True


class LoginRequestedMessage(Message):
    """
    posted when an anonymous user asks to log in (sidebar, add to cart)
    """

    bubble = True


class SessionChangedMessage(Message):
    """
    Fired at App level after every authentication transition
    (login, register, logout, rejected token), so screens can re-render.
    """

    bubble = True


class SessionInvalidMessage(Message):
    """
    Fired when the backend rejected the token (401).
    The App answers by sending the user to the login screen.
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever the cart snapshot was replaced, either by a mutation
    or by a refresh. Cart screen and sidebar badge listen to it.

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is created by checkout.
    The app resyncs the active screen on it.
    """

    bubble = True

