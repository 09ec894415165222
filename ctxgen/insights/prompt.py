"""Jinja2 prompt rendering for insight extraction."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .schema import schema_description

TEMPLATE_NAME = "code_insights.j2"

EXAMPLE_INPUT = {
    "imports": [{"source": "react"}],
    "functions": [{"name": "calculateTotal", "params": ["price", "quantity"]}],
    "classes": [{"name": "Product"}],
}
EXAMPLE_OUTPUT = {
    "functions": [{"name": "calculateTotal", "parameters": ["price", "quantity"]}],
    "classes": [{"name": "Product"}],
    "imports": [{"source": "react"}],
}


class InsightPromptBuilder:
    """Renders the extraction prompt from the packaged template."""

    def __init__(self, templates_dir: Optional[Path] = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._schema = schema_description()

    def build(self, payload: str, file_path: str) -> str:
        template = self._env.get_template(TEMPLATE_NAME)
        return template.render(
            file_path=file_path,
            schema=self._schema,
            example_input=json.dumps(EXAMPLE_INPUT, separators=(",", ":")),
            example_output=json.dumps(EXAMPLE_OUTPUT, separators=(",", ":")),
            payload=payload,
        )


__all__ = ["EXAMPLE_INPUT", "EXAMPLE_OUTPUT", "InsightPromptBuilder"]
