# backend/services/room_ids.py

DIRECT_PREFIX = "friend-"
PROJECT_PREFIX = "project-"


def direct_room_id(user_a: str, user_b: str) -> str:
    """
    Room id for a one-to-one chat.

    Both participants must arrive at the same id, so the two user ids are
    sorted before joining: direct_room_id("b", "a") == "friend-a-b".
    """
    if not user_a or not user_b:
        raise ValueError("Both user ids are required")
    if user_a == user_b:
        raise ValueError("A direct room needs two different users")
    first, second = sorted((str(user_a), str(user_b)))
    return f"{DIRECT_PREFIX}{first}-{second}"


def project_room_id(project_id: str) -> str:
    if not project_id:
        raise ValueError("project_id is required")
    return f"{PROJECT_PREFIX}{project_id}"


def is_direct_room(room_id: str) -> bool:
    return room_id.startswith(DIRECT_PREFIX)
