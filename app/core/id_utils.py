import uuid

import shortuuid

ORDER_ID_PREFIX = "SO-"
_ORDER_ALPHABET = "0123456789ABCDEFGHJKLMNPQRSTUVWXYZ"


def generate_uuid() -> str:
    return str(uuid.uuid4())


def generate_shortuuid() -> str:
    return shortuuid.uuid()


def generate_order_id(length: int = 8) -> str:
    return ORDER_ID_PREFIX + shortuuid.ShortUUID(alphabet=_ORDER_ALPHABET).random(length=length)
