from __future__ import annotations

from dataclasses import dataclass

DEFAULT_SUFFIX = ".apidoc.md"
DEFAULT_JSON_INDENT = 4


@dataclass
class DocOptions:
    """Settings shared by the CLI and the protoc plugin."""

    suffix: str = DEFAULT_SUFFIX
    json_indent: int = DEFAULT_JSON_INDENT
    patch_as_delete: bool = False

    @classmethod
    def from_parameter(cls, parameter: str) -> DocOptions:
        """Parse a protoc plugin parameter string.

        The parameter is a comma-separated list such as
        'patch_as_delete,suffix=.md,json_indent=2'.
        """
        options = cls()
        for item in parameter.split(","):
            item = item.strip()
            if not item:
                continue
            key, _, value = item.partition("=")
            if key == "patch_as_delete":
                options.patch_as_delete = value.lower() not in ("false", "0", "no")
            elif key == "suffix" and value:
                options.suffix = value
            elif key == "json_indent":
                try:
                    options.json_indent = int(value)
                except ValueError:
                    raise ValueError(f"Invalid json_indent value: {value!r}") from None
            else:
                raise ValueError(f"Unknown parameter: {item!r}")
        return options
