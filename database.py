import os
import logging
from typing import Optional

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "ecommerce")

# MongoClient connects lazily, so importing this module never blocks on the server
client: MongoClient = MongoClient(DATABASE_URL, serverSelectionTimeoutMS=5000, tz_aware=True)
db: Database = client[DATABASE_NAME]


def get_db() -> Database:
    return db


def ensure_indexes(database: Optional[Database] = None) -> None:
    database = database if database is not None else db
    database["users"].create_index([("email", ASCENDING)], unique=True)
    database["categories"].create_index([("slug", ASCENDING)], unique=True)
    database["orders"].create_index([("buyer", ASCENDING)])
    logger.info("MongoDB indexes ensured on %s", database.name)
