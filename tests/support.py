"""Helpers compartidos por los tests: reloj controlable, storage que registra llamadas y URLs de WeCom."""

from wechat_enterprise.src.storage import InMemoryStorage

API_BASE = "https://qyapi.weixin.qq.com"
TOKEN_URL = f"{API_BASE}/cgi-bin/gettoken"
SEND_URL = f"{API_BASE}/cgi-bin/message/send"

NOW = 1_700_000_000_000


class FakeClock:
    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds * 1000


class RecordingStorage(InMemoryStorage):
    """In-memory storage that records load/save into a shared event list."""

    process_local = False

    def __init__(self, events=None, fail_save: bool = False, fail_load: bool = False):
        super().__init__()
        self.events = events if events is not None else []
        self.fail_save = fail_save
        self.fail_load = fail_load

    def load(self, corp_id):
        self.events.append("load")
        if self.fail_load:
            raise OSError("token database unavailable")
        return super().load(corp_id)

    def save(self, corp_id, credential):
        self.events.append("save")
        if self.fail_save:
            raise OSError("token database is read-only")
        super().save(corp_id, credential)
