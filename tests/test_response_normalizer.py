"""
===============================================================================
Unit‑tests ▸ response_normalizer
===============================================================================

* Streamed fragments are joined in arrival order.
* One leading ```lang fence and one trailing ``` fence are removed, then trimmed.
* Cleaning is idempotent for awkward inputs (nested fences, stray whitespace).
"""
from __future__ import annotations

import pytest

from code_reviewer.response_normalizer import accumulate, normalize, strip_code_fences


def test_accumulate_keeps_arrival_order() -> None:
    fragments = iter(["def f", "():\n", "    return 1", "\n"])
    assert accumulate(fragments) == "def f():\n    return 1\n"


def test_accumulate_passes_plain_text_through() -> None:
    assert accumulate("  as is  ") == "  as is  "


def test_accumulate_ignores_empty_fragments() -> None:
    assert accumulate(["a", "", None, "b"]) == "ab"  # type: ignore[list-item]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("```python\nprint('hi')\n```", "print('hi')"),
        ("```\nx = 1\n```\n", "x = 1"),
        ("```c++\nint main() {}\n```", "int main() {}"),
        ("  ```js\nlet a = 1;\n```  ", "let a = 1;"),
        ("no fences here\n", "no fences here"),
        ("```", ""),
    ],
)
def test_strip_code_fences(raw: str, expected: str) -> None:
    assert strip_code_fences(raw) == expected


def test_normalize_streamed_fenced_output() -> None:
    stream = ["```py", "thon\n", "x = 1\n", "``", "`"]
    assert normalize(stream) == "x = 1"


def test_inner_fences_are_kept() -> None:
    text = 'doc = """\n```\nexample\n```\n"""\nvalue = 2'
    assert normalize(text) == text


@pytest.mark.parametrize(
    "text",
    [
        "```py\n```python\nx\n```\n```",
        "   ```x\ncode",
        "\n\n```\n\n```\n\n",
        "plain",
        "",
        "``` \nbody\n```   \n",
    ],
)
def test_normalize_is_idempotent(text: str) -> None:
    once = normalize(text)
    assert normalize(once) == once
