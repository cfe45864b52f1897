from typing import Any, Dict

import msgspec

from .log_level import LogLevel


class Entry(msgspec.Struct, kw_only=True):
    message: str
    level: LogLevel
    fields: Dict[str, Any] = msgspec.field(
        default_factory=dict,
    )

    def to_template(
        self,
        template: str,
        context: Dict[str, Any] | None = None,
    ) -> str:
        kwargs: Dict[str, Any] = {
            "message": self.message,
            "level": self.level.value,
            "fields": " ".join(
                f"{name}={value}" for name, value in self.fields.items()
            ),
        }

        if context:
            kwargs.update(context)

        return template.format(**kwargs)
