"""
Dialog script parser - compiles a plain-text script into a DialogTree.

Writers can draft a conversation in a text editor and import it:

```
$id = "merchant_intro"
$character = "Mira"
$portrait = "portraits/mira.png"

# start
Welcome, traveller. Looking to trade?

>> Show me your wares -> shop
>> Who are you? -> about
>> Goodbye

---

# about
@portrait portraits/mira_smile.png "Mira smiling"
Just a merchant with too many potions.
-> start

# shop
Take a look.
>> Leave -> end
```

Rules:
- `$key = value` lines before the first node set tree fields
  (id, character, portrait, start); values are read as JSON when possible
- `# node_id` starts a node; the first node is the start node unless
  `$start` says otherwise
- `>> text -> target` adds a response; `end` or no target ends the conversation
- `-> target` adds a "Continue" response
- `@portrait path ["alt"]` overrides the portrait for the node
- `---` closes a node, `//` starts a comment line
- Any other line is message text
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from dialogs.codec import DocumentError
from dialogs.model import DialogNode, DialogTree, Portrait, Response

END_TARGET = "end"
CONTINUE_TEXT = "Continue"


class ScriptSyntaxError(DocumentError):
    """A dialog script line could not be understood."""

    def __init__(self, line_number: int, message: str):
        super().__init__(f"Line {line_number}: {message}")
        self.line_number = line_number


class DialogParser:
    """
    Parses dialog scripts into DialogTree models.
    """

    NODE_PATTERN = re.compile(r'^#\s*([\w.-]+)\s*$')
    CHOICE_PATTERN = re.compile(r'^>>\s*(.+?)\s*(?:->\s*([\w.-]+))?\s*$')
    NEXT_PATTERN = re.compile(r'^->\s*([\w.-]+)\s*$')
    PORTRAIT_PATTERN = re.compile(r'^@portrait\s+(\S+)(?:\s+"(.*)")?\s*$')
    VARIABLE_PATTERN = re.compile(r'^\$(\w+)\s*=\s*(.+)$')

    HEADER_KEYS = {"id", "character", "portrait", "start"}

    def parse_file(self, path: str | Path) -> DialogTree:
        """Parse a script file. The tree id defaults to the file stem."""
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_string(content, default_id=path.stem)

    def parse_string(self, content: str, default_id: str = "parsed") -> DialogTree:
        """
        Parse a dialog script.

        Raises:
            ScriptSyntaxError: On malformed input
        """
        header: dict[str, Any] = {}
        nodes: dict[str, DialogNode] = {}
        current: DialogNode | None = None
        text_lines: list[str] = []

        def close_node() -> None:
            nonlocal current, text_lines
            if current is not None:
                current.message = '\n'.join(text_lines).strip()
                nodes[current.id] = current
            current = None
            text_lines = []

        for line_number, raw in enumerate(content.split('\n'), start=1):
            line = raw.rstrip()
            stripped = line.strip()

            if not stripped:
                if current is not None and text_lines:
                    text_lines.append('')
                continue

            if stripped.startswith('//'):
                continue

            if stripped == '---':
                close_node()
                continue

            match = self.NODE_PATTERN.match(stripped)
            if match:
                close_node()
                node_id = match.group(1)
                if node_id in nodes:
                    raise ScriptSyntaxError(line_number, f'Duplicate node "{node_id}"')
                current = DialogNode(id=node_id)
                continue

            if current is None:
                match = self.VARIABLE_PATTERN.match(stripped)
                if not match:
                    raise ScriptSyntaxError(line_number, "Text outside of a node")
                key = match.group(1)
                if key not in self.HEADER_KEYS:
                    raise ScriptSyntaxError(line_number, f'Unknown header "${key}"')
                header[key] = self._parse_value(match.group(2).strip())
                continue

            match = self.PORTRAIT_PATTERN.match(stripped)
            if match:
                current.portrait = Portrait(path=match.group(1), alt=match.group(2) or "")
                continue

            match = self.CHOICE_PATTERN.match(stripped)
            if match:
                current.responses.append(
                    Response(text=match.group(1), next_node_id=self._target(match.group(2)))
                )
                continue

            match = self.NEXT_PATTERN.match(stripped)
            if match:
                current.responses.append(
                    Response(text=CONTINUE_TEXT, next_node_id=self._target(match.group(1)))
                )
                continue

            text_lines.append(line)

        close_node()

        if not nodes:
            raise ScriptSyntaxError(1, "Script defines no nodes")

        start = header.get("start") or next(iter(nodes))
        portrait = header.get("portrait")

        return DialogTree(
            id=str(header.get("id") or default_id),
            character_name=str(header.get("character") or ""),
            portrait=Portrait(path=str(portrait) if portrait else None),
            start_node_id=str(start),
            nodes=nodes,
        )

    @staticmethod
    def _parse_value(value: str) -> Any:
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    @staticmethod
    def _target(name: str | None) -> str | None:
        if name is None or name == END_TARGET:
            return None
        return name
