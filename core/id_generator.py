import random

# Двухзначные коды сущностей
TYPE_POSTFIX = {
    "users": 1,
    "photos": 3,
    "photo_likes": 4,
    "matches": 5,
    "swipes": 6,
    "swipe_pairs": 7,
    "confessions": 10,
    "confession_reactions": 11,
    "confession_comments": 12,
    "confession_reports": 13,
    "messages": 20,
    "notifications": 21,
}


def generate_random_id(entity: str) -> int:
    """Возвращает id: 10 случайных цифр + 2-значный постфикс сущности."""
    if entity not in TYPE_POSTFIX:
        raise ValueError(f"Unknown entity for ID generation: {entity}")
    rand10 = random.randint(1, 9_999_999_999)
    postfix = TYPE_POSTFIX[entity]
    return rand10 * 100 + postfix
