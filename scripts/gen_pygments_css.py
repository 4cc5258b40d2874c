import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from namumark.core.config import get_settings
from namumark.services.highlight import stylesheet

target = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("static/css/pygments.css")
target.parent.mkdir(parents=True, exist_ok=True)
target.write_text(stylesheet())
print(f"Written {target} ({get_settings().highlight_style})")
