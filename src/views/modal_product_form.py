from __future__ import annotations

import mimetypes
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

import httpx
from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Checkbox, Input, Label, Select

from api.errors import ApiError
from api.models import KeyboardLayout, Product, ProductDraft
from utils.pure import humanize_enum
from utils.validation import validate_product_form

# form field -> input id
_TEXT_INPUTS = {
    "name": "#input-name",
    "brand": "#input-brand",
    "description": "#input-description",
    "price": "#input-price",
    "stock_quantity": "#input-stock",
    "switch_type": "#input-switch",
    "keycap_material": "#input-keycap",
    "case_material": "#input-case",
    "image_url": "#input-image-url",
}


class ProductFormModal(ModalScreen[bool]):
    """
    Create a product, or edit `product` when given.
    Returns True when the backend accepted the change.
    """

    def __init__(self, product: Optional[Product] = None) -> None:
        super().__init__()
        self._product = product

    def compose(self) -> ComposeResult:
        title = f"Edit Product #{self._product.id}" if self._product else "New Product"
        with VerticalScroll(id="div-product-form"):
            yield Label(title, classes="section-title")
            with Horizontal():
                with Vertical():
                    yield Label("Name *")
                    yield Input(id="input-name")
                with Vertical():
                    yield Label("Brand *")
                    yield Input(id="input-brand")
            yield Label("Description *")
            yield Input(id="input-description")
            with Horizontal():
                with Vertical():
                    yield Label("Price ($) *")
                    yield Input(
                        id="input-price",
                        type="number",
                        validators=[Number(minimum=0.01)],
                    )
                with Vertical():
                    yield Label("Stock Quantity *")
                    yield Input(
                        id="input-stock",
                        type="integer",
                        validators=[Number(minimum=0)],
                    )
            yield Label("Layout *")
            yield Select(
                [(humanize_enum(k.value), k.value) for k in KeyboardLayout],
                prompt="Choose a layout",
                id="select-layout",
            )
            with Horizontal():
                with Vertical():
                    yield Label("Switch Type")
                    yield Input(id="input-switch")
                with Vertical():
                    yield Label("Keycap Material")
                    yield Input(id="input-keycap")
                with Vertical():
                    yield Label("Case Material")
                    yield Input(id="input-case")
            with Horizontal():
                yield Checkbox("RGB Support", id="chk-rgb")
                yield Checkbox("Wireless Support", id="chk-wireless")
            yield Label("Image URL")
            yield Input(id="input-image-url", placeholder="https://... or uploaded path")
            yield Label("Upload image from file")
            with Horizontal():
                yield Input(id="input-image-file", placeholder="/path/to/image.png")
                yield Button("Upload", id="btn-upload")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button(
                    "Save" if self._product else "Create",
                    id="btn-submit",
                    variant="primary",
                )

    def on_mount(self) -> None:
        if self._product:
            draft = ProductDraft.from_product(self._product)
            values = {
                "name": draft.name,
                "brand": draft.brand,
                "description": draft.description,
                "price": f"{draft.price:.2f}",
                "stock_quantity": str(draft.stock_quantity),
                "switch_type": draft.switch_type,
                "keycap_material": draft.keycap_material,
                "case_material": draft.case_material,
                "image_url": draft.image_url,
            }
            for field, selector in _TEXT_INPUTS.items():
                self.query_one(selector, Input).value = values[field]
            if draft.layout in {k.value for k in KeyboardLayout}:
                self.query_one("#select-layout", Select).value = draft.layout
            self.query_one("#chk-rgb", Checkbox).value = draft.rgb_support
            self.query_one("#chk-wireless", Checkbox).value = draft.wireless_support
        self.query_one("#input-name").focus()
        self.load_layouts()

    @work(exclusive=True)
    async def load_layouts(self) -> None:
        # the server may know layouts this client doesn't
        try:
            layouts = await self.app.client.list_layouts()
        except (ApiError, httpx.HTTPError):
            return
        if not layouts:
            return
        select = self.query_one("#select-layout", Select)
        current = select.value
        select.set_options([(humanize_enum(name), name) for name in layouts])
        if isinstance(current, str) and current in layouts:
            select.value = current

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def _fields(self) -> Dict[str, str]:
        fields = {f: self.query_one(s, Input).value for f, s in _TEXT_INPUTS.items()}
        layout = self.query_one("#select-layout", Select).value
        fields["layout"] = layout if isinstance(layout, str) else ""
        return fields

    @on(Button.Pressed, "#btn-upload")
    @work(exclusive=True, group="upload")
    async def handle_upload(self) -> None:
        raw = self.query_one("#input-image-file", Input).value.strip()
        path = Path(raw).expanduser()
        if not raw or not path.is_file():
            self.notify("Choose an existing image file.", severity="error")
            return
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        if not content_type.startswith("image/"):
            self.notify("Only image files can be uploaded.", severity="error")
            return
        try:
            stored = await self.app.client.upload_product_image(
                path.name, path.read_bytes(), content_type
            )
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to upload image: {e}", severity="error")
            return
        self.query_one("#input-image-url", Input).value = stored
        self.notify("Image uploaded.")

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True, group="submit")
    async def handle_submit(self) -> None:
        fields = self._fields()
        errors = validate_product_form(fields)
        if "general" not in errors:
            if not self.query_one("#input-price", Input).is_valid:
                errors["price"] = "Please enter a valid price"
            if not self.query_one("#input-stock", Input).is_valid:
                errors["stock_quantity"] = "Please enter a valid stock quantity"
        if errors:
            for field, selector in _TEXT_INPUTS.items():
                if field in errors:
                    self.query_one(selector, Input).add_class("-invalid")
            self.notify("\n".join(errors.values()), severity="error")
            return

        draft = ProductDraft(
            name=fields["name"].strip(),
            description=fields["description"].strip(),
            price=Decimal(fields["price"].strip()),
            brand=fields["brand"].strip(),
            layout=fields["layout"],
            stock_quantity=int(fields["stock_quantity"]),
            switch_type=fields["switch_type"].strip(),
            keycap_material=fields["keycap_material"].strip(),
            case_material=fields["case_material"].strip(),
            rgb_support=self.query_one("#chk-rgb", Checkbox).value,
            wireless_support=self.query_one("#chk-wireless", Checkbox).value,
            image_url=fields["image_url"].strip(),
        )
        client = self.app.client
        try:
            if self._product:
                await client.admin_update_product(self._product.id, draft)
            else:
                await client.admin_create_product(draft)
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to save product: {e}", severity="error")
            return

        self.app.notify("Product updated." if self._product else "Product created.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(False)
