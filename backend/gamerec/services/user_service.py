from sqlalchemy import func
from sqlalchemy.orm import Session

from gamerec.core.logging import get_logger
from gamerec.models.user import User, UserProfile
from gamerec.schemas.user import ProfileUpdate, PublicProfile, PublicUser, UserStats

logger = get_logger(__name__)


def get_user(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_profile(db: Session, user_id: int) -> UserProfile | None:
    return db.query(UserProfile).filter(UserProfile.user_id == user_id).first()


def update_profile(db: Session, user: User, update: ProfileUpdate) -> UserProfile:
    """
    Apply a partial profile update.

    ``username`` lives on the user row; everything else on the profile,
    which is created on first update if registration never made one.
    """
    data = update.model_dump(exclude_unset=True)

    username = data.pop("username", None)
    if username:
        user.username = username

    profile = get_profile(db, user.id)
    if profile is None:
        profile = UserProfile(user_id=user.id, preferred_language="ru")
        db.add(profile)

    for field, value in data.items():
        if field == "preferred_language" and value is None:
            continue
        setattr(profile, field, value)

    db.commit()
    db.refresh(profile)

    logger.info(
        "Profile updated",
        extra={"extra_fields": {"user_id": user.id, "fields": sorted(update.model_fields_set)}},
    )
    return profile


def _public_profile(profile: UserProfile | None) -> PublicProfile:
    if profile is None:
        return PublicProfile()
    return PublicProfile(avatar_url=profile.avatar_url, bio=profile.bio)


def get_public_user(db: Session, user_id: int) -> PublicUser | None:
    user = get_user(db, user_id)
    if user is None:
        return None

    return PublicUser(
        id=user.id,
        username=user.username,
        profile=_public_profile(get_profile(db, user_id)),
        created_at=user.created_at,
    )


def count_users(db: Session) -> int:
    return db.query(func.count(User.id)).scalar() or 0


def get_user_stats(db: Session, user_id: int) -> UserStats | None:
    user = get_user(db, user_id)
    if user is None:
        return None

    return UserStats(
        userId=user.id,
        username=user.username,
        joinedAt=user.created_at,
        profile=_public_profile(get_profile(db, user_id)),
        stats={"totalUsers": count_users(db)},
    )
