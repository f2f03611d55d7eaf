from tinydb import TinyDB

from dompet.config import get_settings
from dompet.db.kv import KeyValueStore, RedisKeyValueStore, TinyDBKeyValueStore
from dompet.db.repository import Repositories
from dompet.llm.parser import IntentParser
from dompet.services.confirm import ConfirmationStore
from dompet.services.guard import MessageGuard
from dompet.services.processor import MessageProcessor
from dompet.services.router import ActionRouter

settings = get_settings()

repos = Repositories(TinyDB(settings.db_path))

kv: KeyValueStore
if settings.redis_url:
    kv = RedisKeyValueStore(settings.redis_url)
else:
    kv = TinyDBKeyValueStore(TinyDB(settings.kv_path))

parser = IntentParser(
    api_key=settings.openrouter_api_key,
    model=settings.llm_model,
    nlu_model=settings.nlu_model,
    base_url=settings.openrouter_base_url,
)
confirmations = ConfirmationStore(kv, ttl=settings.confirm_ttl_seconds)
guard = MessageGuard(
    kv,
    rate_limit_max=settings.rate_limit_max,
    rate_limit_window=settings.rate_limit_window_seconds,
    daily_ai_limit=settings.daily_ai_limit,
    dedup_ttl=settings.dedup_ttl_seconds,
)
router = ActionRouter(repos, confirmations)
processor = MessageProcessor(
    repos,
    parser,
    router,
    confirmations,
    guard,
    history_size=settings.history_size,
    max_input_length=settings.max_input_length,
)
