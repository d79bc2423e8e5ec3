"""
User feedback service for storing route ratings and emotion samples using
MongoDB as the persistence layer. Falls back to no-op mode if MongoDB is unavailable.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from vibenav.config import settings
from vibenav.models.feedback import EmotionRecord, RouteFeedback


class FeedbackService:
    """Service for managing user feedback data in MongoDB or no-op mode"""

    def __init__(
        self,
        mongo_uri: Optional[str] = None,
        database_name: Optional[str] = None,
        collection_name: Optional[str] = None,
        *,
        collection: Any = None,
        emotions_collection: Any = None,
    ):
        self.mongo_uri = mongo_uri or settings.mongo_uri
        self.database_name = database_name or settings.mongo_db_name
        self.collection_name = collection_name or settings.mongo_feedback_collection

        self.mongodb_available = False
        self.client = None
        self.collection = collection
        self.emotions_collection = emotions_collection

        if collection is not None:
            self.mongodb_available = True
            return

        try:
            self.client = MongoClient(self.mongo_uri, serverSelectionTimeoutMS=2000)
            # Test connection
            self.client.server_info()
            database = self.client[self.database_name]
            self.collection = database[self.collection_name]
            self.emotions_collection = database[settings.mongo_emotions_collection]
            self.mongodb_available = True
            self._init_collection()
            print("✅ MongoDB connection established for feedback storage")
        except PyMongoError as e:
            print(f"⚠️ MongoDB not available: {e}")
            print("💡 Feedback will be accepted but not stored")
            self.mongodb_available = False

    def _init_collection(self) -> None:
        """Create indexes that support frequent query patterns."""
        try:
            self.collection.create_index("route_identifier")
            self.collection.create_index("stored_route_id")
            self.collection.create_index("created_at")
            self.emotions_collection.create_index([("user_id", 1), ("created_at", -1)])
        except PyMongoError as exc:
            print(f"Error initializing feedback collection: {exc}")

    def store_feedback(self, feedback: RouteFeedback) -> bool:
        """Store one feedback entry, or no-op if MongoDB is unavailable."""
        if not self.mongodb_available:
            print("💡 Feedback received but not stored (MongoDB unavailable)")
            return True

        document = {
            "route_identifier": feedback.route_id,
            "route_label": feedback.route_label,
            "rating": feedback.rating,
            "comment": feedback.comment,
            "vibe_weights": feedback.vibe_weights.model_dump(),
            "stored_route_id": feedback.stored_route_id,
            "created_at": datetime.now(timezone.utc),
        }

        try:
            self.collection.insert_one(document)
            return True
        except PyMongoError as exc:
            print(f"Error storing feedback in MongoDB: {exc}")
            return False

    def record_emotion(self, record: EmotionRecord) -> bool:
        """Store one emotion sample, or no-op if there is nowhere to put it."""
        if not self.mongodb_available or self.emotions_collection is None:
            print("💡 Emotion received but not stored (MongoDB unavailable)")
            return True

        document = {
            "user_id": record.user_id,
            "route_identifier": record.route_id,
            "state": record.state,
            "intensity": record.intensity,
            "created_at": datetime.now(timezone.utc),
        }

        try:
            self.emotions_collection.insert_one(document)
            return True
        except PyMongoError as exc:
            print(f"Error storing emotion in MongoDB: {exc}")
            return False

    def is_available(self) -> bool:
        """Check if feedback storage is available."""
        return self.mongodb_available
