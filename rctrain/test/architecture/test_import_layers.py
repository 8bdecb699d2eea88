from __future__ import annotations

from rctrain.test.architecture._gate import require_arch_checks_enabled
from rctrain.test.architecture._utils import (
    iter_python_files,
    matches_prefix,
    package_root,
    parse_imports,
)

# Lower layers never import from the layers listed against them.
_FORBIDDEN = {
    "core": ("rctrain.platform", "rctrain.git", "rctrain.services", "rctrain.cli", "typer"),
    "platform": ("rctrain.git", "rctrain.services", "rctrain.cli", "typer"),
    "git": ("rctrain.services", "rctrain.cli", "typer"),
    "services": ("rctrain.cli", "typer"),
}


def test_layers_only_import_downwards() -> None:
    require_arch_checks_enabled()

    root = package_root()
    offenders: list[str] = []
    for layer, forbidden in _FORBIDDEN.items():
        for file_path in iter_python_files(root / layer):
            rel = file_path.relative_to(root)
            for item in parse_imports(file_path):
                if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                    offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, "layer violations:\n" + "\n".join(offenders)
