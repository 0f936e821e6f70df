"""
User registry and authentication.
"""
import logging
from typing import Callable, List, Optional, Tuple

from werkzeug.security import check_password_hash, generate_password_hash

from .ids import uid as default_uid
from .models import User

logger = logging.getLogger(__name__)

SEED_ADMIN = {
    'id': 'u_admin',
    'name': 'Organizer',
    'email': 'org@example.com',
    'password': 'pass',
}


def load_users(store) -> List[User]:
    """Load user registry from the store."""
    data = store.get('users', [])
    if not isinstance(data, list):
        logger.warning('Ignoring malformed user registry')
        return []
    return [User.from_dict(u) for u in data]


def save_users(store, users: List[User]):
    """Save user registry to the store."""
    store.set('users', [u.to_dict() for u in users])


def ensure_seed_admin(store):
    """Create the demo organizer account on first run."""
    with store.lock:
        if store.get('users', None) is not None:
            return
        admin = User(
            id=SEED_ADMIN['id'],
            name=SEED_ADMIN['name'],
            email=SEED_ADMIN['email'],
            password_hash=generate_password_hash(SEED_ADMIN['password']),
            admin=True,
        )
        save_users(store, [admin])
    logger.info('Seeded demo organizer account %s', admin.email)


def create_user(store, name: str, email: str, password: str,
                uid: Callable[[str], str] = default_uid) -> Tuple[bool, str, Optional[User]]:
    """Create a new user. Returns (success, message, user)."""
    email = (email or '').strip().lower()
    if not email:
        return False, 'Email is required.', None
    if not password:
        return False, 'Password is required.', None
    with store.lock:
        users = load_users(store)
        if any(u.email == email for u in users):
            return False, 'Email taken', None
        user = User(
            id=uid('u'),
            name=(name or '').strip() or 'Player',
            email=email,
            password_hash=generate_password_hash(password),
            admin=False,
        )
        users.append(user)
        save_users(store, users)
    return True, 'Account created successfully.', user


def authenticate_user(store, email: str, password: str) -> Optional[User]:
    """Check email/password. Returns the user if valid."""
    email = (email or '').strip().lower()
    for user in load_users(store):
        if user.email == email:
            return user if check_password_hash(user.password_hash, password or '') else None
    return None


def get_user(store, user_id: str) -> Optional[User]:
    if not user_id:
        return None
    return next((u for u in load_users(store) if u.id == user_id), None)
