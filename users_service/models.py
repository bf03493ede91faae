import threading
from typing import Dict, List, Optional
from pydantic import BaseModel


class User(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str


class EmailAlreadyRegistered(Exception):
    def __init__(self, email: str):
        super().__init__(f"Email {email} already registered")
        self.email = email


class UserRepository:
    """Stockage en mémoire des utilisateurs.

    Les ids sont attribués par un compteur monotone: jamais réutilisés.
    L'unicité de l'email est une contrainte du stockage (comme un index
    UNIQUE en base), pas du handler HTTP.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[int, User] = {}
        self._next_id = 1

    def list(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def get(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def add(self, first_name: str, last_name: str, email: str) -> User:
        with self._lock:
            if any(u.email.lower() == email.lower() for u in self._users.values()):
                raise EmailAlreadyRegistered(email)
            user = User(id=self._next_id, first_name=first_name, last_name=last_name, email=email)
            self._users[user.id] = user
            self._next_id += 1
            return user

    def clear(self):
        with self._lock:
            self._users.clear()
            self._next_id = 1


users_db = UserRepository()
