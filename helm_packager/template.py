"""Placeholder substitution for chart and values text.

A placeholder is any `{name}` span in the text. Each one is handed to a tag
function which writes the replacement to the output:

```python
import io
from helm_packager.template import execute_func

out = io.StringIO()
execute_func("image: {IMAGE}", "{", "}", out, lambda w, tag: w.write("busybox"))
assert out.getvalue() == "image: busybox"
```

Substitution is a single left to right pass. Text written by a tag function
is never scanned again, and an unterminated placeholder is copied as is.
"""

from collections.abc import Callable, Mapping
import io
from typing import TextIO

__all__ = [
    "TagFunc",
    "execute_func",
    "apply_stamping",
]


TagFunc = Callable[[TextIO, str], int]
"""Writes the replacement for a tag and returns the number of characters written."""


def execute_func(
    template: str, start_tag: str, end_tag: str, writer: TextIO, func: TagFunc
) -> int:
    """Call `func` on each placeholder in `template`, writing the result to `writer`.

    Returns the number of characters written.
    """
    if not start_tag or not end_tag:
        raise ValueError("Start and end tags must not be empty")
    remaining = template
    written = 0
    while (n := remaining.find(start_tag)) >= 0:
        written += writer.write(remaining[:n])
        remaining = remaining[n + len(start_tag) :]
        if (n := remaining.find(end_tag)) < 0:
            # Unterminated tag, emit the rest verbatim
            written += writer.write(start_tag)
            break
        written += func(writer, remaining[:n])
        remaining = remaining[n + len(end_tag) :]
    written += writer.write(remaining)
    return written


def apply_stamping(content: str, stamps: Mapping[str, str]) -> str:
    """Replace `{KEY}` placeholders with stamp values.

    Unknown keys are left in place so chart text this tool does not own
    survives untouched.
    """

    def stamp(writer: TextIO, tag: str) -> int:
        if (value := stamps.get(tag)) is not None:
            return writer.write(value)
        return writer.write(f"{{{tag}}}")

    out = io.StringIO()
    execute_func(content, "{", "}", out, stamp)
    return out.getvalue()
