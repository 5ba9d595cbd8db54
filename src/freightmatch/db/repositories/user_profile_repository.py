from sqlalchemy.orm import Session

from ..schema import UserProfile


class UserProfileRepository:
    """Customer profiles; only the push token matters to the core."""

    def __init__(self, session: Session):
        self.session = session

    def upsert(self, user_id: str, push_token: str | None = None) -> None:
        row = self.session.get(UserProfile, user_id)
        if row is None:
            self.session.add(UserProfile(user_id=user_id, push_token=push_token))
            return
        row.push_token = push_token

    def get_push_token(self, user_id: str) -> str | None:
        row = self.session.get(UserProfile, user_id)
        return row.push_token if row is not None else None
