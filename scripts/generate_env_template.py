"""Generate .env.example from the Settings fields, secrets left blank."""
import sys
from pathlib import Path

root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from backend.config import Settings  # noqa: E402

SECRET_MARKERS = ("key", "secret")
dest = root / '.env.example'

lines = ["# Generated by scripts/generate_env_template.py"]
for name, field in Settings.model_fields.items():
    default = field.default
    if default is None or any(marker in name for marker in SECRET_MARKERS):
        value = ""
    elif isinstance(default, list):
        value = ",".join(str(item) for item in default)
    elif isinstance(default, Path):
        value = str(default.relative_to(root)) if default.is_relative_to(root) else str(default)
    else:
        value = str(default)
    lines.append(f"{name.upper()}={value}")

dest.write_text('\n'.join(lines) + '\n')
print(f'Wrote template to {dest}')
