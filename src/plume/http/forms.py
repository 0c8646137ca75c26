"""Form data parsing — URL-encoded and multipart.

``FormData`` implements ``MultiValueMapping`` so ``Form.validate()``
reads a parsed body exactly like a plain ``dict`` of test values.

``python-multipart`` is an optional dependency (``pip install plume-forms[multipart]``).
URL-encoded forms use stdlib ``urllib.parse`` with no extra dependency.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from plume.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission.

    The content is held in memory as bytes. Files are never flashed as
    old input.
    """

    filename: str
    content_type: str
    size: int
    _content: bytes

    def read(self) -> bytes:
        """Return the file content as bytes."""
        return self._content

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(Mapping[str, str]):
    """Immutable parsed form data.

    ``__getitem__`` returns the first value for a key (string fields only).
    ``get_list`` returns all values for a key.
    ``files`` provides access to uploaded files by field name.

    Usage::

        form_data = parse_form_data(body, content_type)
        ContactForm.make().validate(form_data)
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: dict[str, list[str]],
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "_files", files or {})

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> FormData:
        """Build from ``{name: value}`` or ``{name: [values]}``."""
        data: dict[str, list[str]] = {}
        for key, value in values.items():
            if isinstance(value, (list, tuple)):
                data[key] = [str(v) for v in value]
            else:
                data[key] = [str(value)]
        return cls(data)

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by field name."""
        return self._files

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"FormData({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (checkboxes, multi-selects)."""
        return list(self._data.get(key, []))


def form_values(form: Any) -> dict[str, str]:
    """Flatten submitted values to strings for template re-population.

    Accepts a ``Form`` (its fields' current values) or a ``Mapping``.
    """
    if hasattr(form, "fields") and callable(form.fields):
        return {fld.name: fld.display_value for fld in form.fields()}
    if isinstance(form, Mapping):
        return {k: "" if v is None else str(v) for k, v in form.items()}
    return {}


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a form body into FormData.

    Supports:
    - ``application/x-www-form-urlencoded`` (stdlib, no extra dependency)
    - ``multipart/form-data`` (requires ``python-multipart``)

    Raises:
        ConfigurationError: If multipart parsing is needed but
            ``python-multipart`` is not installed.
        ValueError: If content type is not a supported form encoding.
    """
    ct_lower = content_type.lower().split(";")[0].strip()

    if ct_lower == "application/x-www-form-urlencoded":
        return _parse_urlencoded(body)

    if ct_lower == "multipart/form-data":
        return _parse_multipart(body, content_type)

    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_urlencoded(body: bytes) -> FormData:
    """Parse URL-encoded form data using stdlib."""
    from urllib.parse import parse_qs

    parsed = parse_qs(body.decode("utf-8"), keep_blank_values=True)
    return FormData(parsed)


class _PartCollector:
    """python-multipart callbacks that gather fields and files."""

    def __init__(self) -> None:
        self.data: dict[str, list[str]] = {}
        self.files: dict[str, UploadFile] = {}
        self._reset()

    def _reset(self) -> None:
        self._headers: dict[str, str] = {}
        self._header_name = ""
        self._body = bytearray()
        self._name: str | None = None
        self._filename: str | None = None

    def callbacks(self) -> dict[str, Any]:
        return {
            "on_part_begin": self._reset,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
        }

    def on_part_data(self, buf: bytes, start: int, end: int) -> None:
        self._body.extend(buf[start:end])

    def on_header_field(self, buf: bytes, start: int, end: int) -> None:
        self._header_name = buf[start:end].decode("latin-1").lower()

    def on_header_value(self, buf: bytes, start: int, end: int) -> None:
        value = buf[start:end].decode("latin-1")
        self._headers[self._header_name] = value
        if self._header_name != "content-disposition":
            return
        _, params = _parse_options_header(value)
        if (name := params.get(b"name")) is not None:
            self._name = name.decode("utf-8")
        if (filename := params.get(b"filename")) is not None:
            self._filename = filename.decode("utf-8")

    def on_part_end(self) -> None:
        if self._name is None:
            return
        if self._filename is None:
            text = self._body.decode("utf-8", errors="replace")
            self.data.setdefault(self._name, []).append(text)
            return
        content = bytes(self._body)
        self.files[self._name] = UploadFile(
            filename=self._filename,
            content_type=self._headers.get("content-type", "application/octet-stream"),
            size=len(content),
            _content=content,
        )


def _parse_options_header(value: str) -> tuple[bytes, dict[bytes, bytes]]:
    from multipart.multipart import parse_options_header

    return parse_options_header(value.encode("latin-1"))


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    """Parse multipart form data using python-multipart.

    Raises ``ConfigurationError`` if ``python-multipart`` is not installed.
    """
    try:
        from multipart.multipart import MultipartParser
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install plume-forms[multipart]"
        )
        raise ConfigurationError(msg) from None

    _, options = _parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    collector = _PartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    parser.write(body)
    parser.finalize()
    return FormData(collector.data, collector.files)
