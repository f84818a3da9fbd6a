import json
import logging
import time

def _ts(created: float) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(created)) + f".{int(created * 1000) % 1000:03d}Z"

class JsonFormatter(logging.Formatter):
    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": _ts(record.created),
            "level": record.levelname,
            "svc": self.service,
            "event": getattr(record, "event", "log"),
            "msg": record.getMessage(),
        }
        for k, v in getattr(record, "extra_fields", {}).items():
            payload[k] = v
        return json.dumps(payload, ensure_ascii=False, default=str)

class TextFormatter(logging.Formatter):
    """One human-readable line; access records get 'METHOD path status Nms'."""

    def format(self, record: logging.LogRecord) -> str:
        line = f"[{_ts(record.created)}] {record.levelname} - {record.getMessage()}"
        fields = getattr(record, "extra_fields", {})
        if "method" in fields:
            line += f" {fields['method']} {fields.get('path')} {fields.get('status')} {fields.get('duration_ms')}ms"
        if "stack" in fields:
            line += "\n" + str(fields["stack"])
        return line

def make_formatter(service_name: str, fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter(service_name)
    return TextFormatter()

def setup_logging(service_name: str, level_name: str = "INFO", fmt: str = "text"):
    root = logging.getLogger()
    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(make_formatter(service_name, fmt))
        root.addHandler(h)
    root.setLevel(getattr(logging, level_name.upper(), logging.INFO))
