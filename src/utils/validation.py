# client-side form validation, never touches the network
import re
from dataclasses import dataclass
from typing import Dict

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

USERNAME_MIN = 3
USERNAME_MAX = 50
PASSWORD_MIN = 6

PAYMENT_METHODS = {
    "cod": "Cash on Delivery",
    "card": "Credit / Debit Card",
    "bank_transfer": "Bank Transfer",
}


class ValidationError(ValueError):
    """
    Raised when a form fails client-side validation.
    `errors` maps each offending field to a human readable message.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()))


@dataclass(frozen=True)
class RegistrationForm:
    username: str
    email: str
    password: str
    confirm_password: str
    first_name: str
    last_name: str

    def to_json(self) -> dict:
        return {
            "username": self.username.strip(),
            "email": self.email.strip(),
            "password": self.password,
            "firstName": self.first_name.strip(),
            "lastName": self.last_name.strip(),
        }


@dataclass(frozen=True)
class CheckoutForm:
    shipping_address: str
    billing_address: str
    payment_method: str = "cod"
    phone_number: str = ""


def validate_registration(form: RegistrationForm) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    username = form.username.strip()
    if not username:
        errors["username"] = "Username is required"
    elif len(form.username) < USERNAME_MIN:
        errors["username"] = f"Username must be at least {USERNAME_MIN} characters"
    elif len(form.username) > USERNAME_MAX:
        errors["username"] = f"Username must be less than {USERNAME_MAX} characters"

    if not form.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(form.email):
        errors["email"] = "Please enter a valid email address"

    if not form.password:
        errors["password"] = "Password is required"
    elif len(form.password) < PASSWORD_MIN:
        errors["password"] = f"Password must be at least {PASSWORD_MIN} characters"

    if form.password != form.confirm_password:
        errors["confirm_password"] = "Passwords do not match"

    if not form.first_name.strip():
        errors["first_name"] = "First name is required"
    if not form.last_name.strip():
        errors["last_name"] = "Last name is required"

    return errors


def validate_login(username: str, password: str) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not username.strip():
        errors["username"] = "Username is required"
    if not password:
        errors["password"] = "Password is required"
    return errors


def validate_checkout(form: CheckoutForm) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not form.shipping_address.strip():
        errors["shipping_address"] = "Shipping address is required"
    if not form.billing_address.strip():
        errors["billing_address"] = "Billing address is required"
    if not form.phone_number.strip():
        errors["phone_number"] = "Phone number is required"
    if form.payment_method not in PAYMENT_METHODS:
        errors["payment_method"] = "Please choose a payment method"
    return errors


def validate_quantity(quantity: int) -> Dict[str, str]:
    if quantity < 1:
        return {"quantity": "Quantity must be at least 1"}
    return {}


def validate_product_form(fields: Dict[str, str]) -> Dict[str, str]:
    """
    Admin product form, required fields and layout. Price and stock
    ranges are checked by the Number validators on their inputs.
    """
    errors: Dict[str, str] = {}
    required = ("name", "description", "price", "brand", "stock_quantity")
    if any(not (fields.get(f) or "").strip() for f in required):
        errors["general"] = "Please fill in all required fields"
        return errors

    if not (fields.get("layout") or "").strip():
        errors["layout"] = "Please choose a layout"
    return errors


def ensure_valid(errors: Dict[str, str]) -> None:
    if errors:
        raise ValidationError(errors)
