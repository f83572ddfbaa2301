from __future__ import annotations

import uuid


def generate_run_id() -> str:
    """Идентификатор запуска (UUID4), попадает в имя лога и отчёта."""
    return str(uuid.uuid4())
