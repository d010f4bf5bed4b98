"""Database initialization script."""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from grocerylist.models import Base, Category, FIRST_POSITION
from grocerylist.config.settings import get_settings
from grocerylist.db.session import engine as default_engine, make_session_factory
from grocerylist.utils.logger import get_logger

logger = get_logger(__name__)


def seed_default_category(session: Session) -> Category:
    """
    Create the default category unless one already exists.

    The default category is the first row written to the categories
    table, so it always holds the lowest id.

    Args:
        session: Database session

    Returns:
        The default category
    """
    default = session.execute(
        select(Category).where(Category.is_default == True)
    ).scalar_one_or_none()
    if default:
        session.commit()
        return default

    existing = session.execute(select(Category.id).limit(1)).first()
    if existing:
        raise RuntimeError("Categories exist but none is marked as default")

    default = Category(
        name=get_settings().DEFAULT_CATEGORY_NAME,
        is_default=True,
        position=FIRST_POSITION,
    )
    session.add(default)
    session.flush()
    session.refresh(default)
    logger.info("Created default category", category_id=default.id, name=default.name)
    session.commit()
    return default


def init_db(engine: Optional[Engine] = None) -> None:
    """Initialize the database with tables and the default category."""
    engine = engine or default_engine
    Base.metadata.create_all(engine)

    with make_session_factory(engine)() as session:
        seed_default_category(session)


if __name__ == "__main__":
    init_db()
