"""支持 python -m redis_key_scanner"""

from .cli import run

run()
