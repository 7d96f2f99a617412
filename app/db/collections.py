"""Collection names and path helpers.

Documents live under Firestore-style paths: a per-user subtree below
`users/{uid}` plus the top-level `pending_users` collection. Each path
collection is stored in the MongoDB collection named after its last
segment, so `users/u1/qarzs` and `users/u2/qarzs` share `qarzs`.
"""

COLLECTION_USERS = "users"
COLLECTION_WASIYATS = "wasiyats"
COLLECTION_QARZS = "qarzs"
COLLECTION_AMANATS = "amanats"
COLLECTION_WITNESSES = "witnesses"
COLLECTION_PENDING_USERS = "pending_users"

# Auth provider records, not addressable by document path
COLLECTION_AUTH_ACCOUNTS = "auth_accounts"

USER_SUBCOLLECTIONS = (
    COLLECTION_WASIYATS,
    COLLECTION_QARZS,
    COLLECTION_AMANATS,
    COLLECTION_WITNESSES,
)


def user_path(uid: str) -> str:
    return f"{COLLECTION_USERS}/{uid}"


def user_collection_path(uid: str, name: str) -> str:
    return f"{COLLECTION_USERS}/{uid}/{name}"


def user_document_path(uid: str, name: str, doc_id: str) -> str:
    return f"{COLLECTION_USERS}/{uid}/{name}/{doc_id}"
