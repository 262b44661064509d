"""Guardrails to keep the kernel free of I/O, side effects and outer-layer imports."""

import re
from pathlib import Path


FORBIDDEN_PATTERNS = {
    "argparse": re.compile(r"\bargparse\b"),
    "pathlib": re.compile(r"\bpathlib\b"),
    "open(": re.compile(r"(?<![A-Za-z0-9_])open\s*\("),
    "print(": re.compile(r"(?<![A-Za-z0-9_])print\s*\("),
    "os.environ": re.compile(r"\bos\.environ\b"),
    "json.load": re.compile(r"\bjson\.loads?\b"),
    "apibreak.config": re.compile(r"\bapibreak\.config\b"),
    "apibreak.report": re.compile(r"\bapibreak\.report\b"),
    "apibreak.api": re.compile(r"\bapibreak\.api\b"),
    "apibreak.cli": re.compile(r"\bapibreak\.cli\b"),
}


def test_kernel_has_no_forbidden_tokens():
    kernel_dir = Path(__file__).resolve().parents[1] / "src" / "apibreak" / "kernel"
    offenders = []

    for path in kernel_dir.glob("*.py"):
        contents = path.read_text(encoding="utf-8")
        for token, pattern in FORBIDDEN_PATTERNS.items():
            if pattern.search(contents):
                offenders.append(f"{path.name}: {token}")

    assert not offenders, "Forbidden kernel tokens found: " + ", ".join(offenders)


def test_kernel_modules_exist():
    kernel_dir = Path(__file__).resolve().parents[1] / "src" / "apibreak" / "kernel"
    names = {path.stem for path in kernel_dir.glob("*.py")}
    assert {"items", "tree", "translate", "compare", "diagnosis", "version"} <= names
