"""
Database initialization module for the contact API.
Ensures the collections and indexes the service needs exist whenever a
connection to MongoDB is (re)established.
"""

import logging
from datetime import datetime, timezone
from pymongo.errors import PyMongoError

from contractor_api.db.mongo import CONTACTS_COLLECTION

# Set up logger
logger = logging.getLogger(__name__)

# Define all collections needed by the application
REQUIRED_COLLECTIONS = [
    {
        "name": CONTACTS_COLLECTION,
        "description": "Stores contact form submissions",
        "indexes": [
            {"keys": [("submittedAt", -1)], "unique": False},  # Admin listing, newest first
            {"keys": [("status", 1)], "unique": False},
            {"keys": [("email", 1)], "unique": False},
            {"keys": [("service", 1)], "unique": False}
        ]
    }
]


async def collection_exists(db, collection_name):
    """
    Check if a collection exists in the database.

    Args:
        db: MongoDB database connection
        collection_name (str): Name of the collection to check

    Returns:
        bool: True if collection exists, False otherwise
    """
    try:
        collections = await db.list_collection_names()
        return collection_name in collections
    except Exception as e:
        logger.error(f"Error checking if collection '{collection_name}' exists: {str(e)}")
        return False


async def ensure_indexes(collection, indexes):
    created = 0
    for index_config in indexes:
        keys = index_config["keys"]
        options = {k: v for k, v in index_config.items() if k != "keys"}
        try:
            await collection.create_index(keys, **options)
            created += 1
            logger.debug(f"✅ Index {keys} ensured for '{collection.name}'")
        except Exception as e:
            logger.warning(f"Failed to create index {keys} for '{collection.name}': {str(e)}")
    return created


async def create_collection_with_indexes(db, collection_config):
    """
    Create a collection with its required indexes if it doesn't exist.

    Returns:
        bool: True if successful, False otherwise
    """
    collection_name = collection_config["name"]
    description = collection_config.get("description", "")

    try:
        if await collection_exists(db, collection_name):
            logger.info(f"✅ Collection '{collection_name}' already exists")
        else:
            logger.info(f"🔄 Creating collection '{collection_name}': {description}")
            await db.create_collection(collection_name)
            logger.info(f"✅ Collection '{collection_name}' created successfully")

        # Still ensure indexes in case they're missing
        await ensure_indexes(db[collection_name], collection_config.get("indexes", []))
        return True

    except Exception as e:
        logger.error(f"❌ Failed to create collection '{collection_name}': {str(e)}")
        return False


async def initialize_database(db):
    """
    Create all required collections and indexes.
    Safe to call multiple times - it only creates what's missing.

    Returns:
        bool: True if initialization completed successfully, False otherwise
    """
    start_time = datetime.now(timezone.utc)
    logger.info(f"🚀 Initializing database: {db.name}")

    success_count = 0
    error_count = 0

    try:
        for collection_config in REQUIRED_COLLECTIONS:
            if await create_collection_with_indexes(db, collection_config):
                success_count += 1
            else:
                error_count += 1
    except PyMongoError as e:
        logger.error(f"❌ MongoDB error during database initialization: {str(e)}")
        return False

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()

    if error_count == 0:
        logger.info(f"🎉 Database initialization completed: {success_count} collections in {duration:.2f}s")
        return True

    logger.warning(f"⚠️ Database initialization completed with errors: {success_count} successful, {error_count} errors in {duration:.2f}s")
    return False


async def verify_database_setup(db):
    """
    Verify that all required collections exist and report their document and index counts.

    Returns:
        dict: Verification results with details about each collection
    """
    verification_results = {
        "database_name": db.name,
        "collections": {},
        "overall_status": "unknown"
    }
    all_good = True

    for collection_config in REQUIRED_COLLECTIONS:
        collection_name = collection_config["name"]
        try:
            if not await collection_exists(db, collection_name):
                verification_results["collections"][collection_name] = {"exists": False, "status": "MISSING"}
                logger.error(f"❌ {collection_name}: Collection does not exist")
                all_good = False
                continue

            collection = db[collection_name]
            doc_count = await collection.count_documents({})
            indexes = await collection.list_indexes().to_list(None)
            index_names = [idx.get("name", "unknown") for idx in indexes]

            verification_results["collections"][collection_name] = {
                "exists": True,
                "document_count": doc_count,
                "indexes": index_names,
                "status": "OK"
            }
            logger.info(f"✅ {collection_name}: {doc_count} documents, {len(index_names)} indexes")

        except Exception as e:
            verification_results["collections"][collection_name] = {
                "exists": "unknown",
                "error": str(e),
                "status": "ERROR"
            }
            logger.error(f"⚠️ {collection_name}: Error during verification - {str(e)}")
            all_good = False

    verification_results["overall_status"] = "PASS" if all_good else "FAIL"
    return verification_results
