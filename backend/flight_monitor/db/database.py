from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from flight_monitor.config import settings


class Base(DeclarativeBase):
    pass



# echo only while developing, SQL of every poll tick is noisy
engine = create_async_engine(
    settings.database_url,
    echo=(settings.app_env == "development" and settings.log_level == "DEBUG"),
)


# expire_on_commit=False: i poll tick leggono gli oggetti dopo la chiusura della sessione
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)
