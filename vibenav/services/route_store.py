"""
Route store - persists the recommended route of each request in MongoDB.
Storage failures never block a route response.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from vibenav.config import settings
from vibenav.models.vibe import RouteCandidate
from vibenav.services.geo import to_wkt_linestring


class RouteStore:
    """Stores recommended routes; returns None when MongoDB is unavailable"""

    def __init__(
        self,
        mongo_uri: Optional[str] = None,
        database_name: Optional[str] = None,
        collection_name: Optional[str] = None,
        *,
        collection: Any = None,
    ):
        self.mongo_uri = mongo_uri or settings.mongo_uri
        self.database_name = database_name or settings.mongo_db_name
        self.collection_name = collection_name or settings.mongo_routes_collection

        self.mongodb_available = False
        self.collection = collection

        if collection is not None:
            self.mongodb_available = True
            return

        try:
            client = MongoClient(self.mongo_uri, serverSelectionTimeoutMS=2000)
            client.server_info()
            self.collection = client[self.database_name][self.collection_name]
            self.mongodb_available = True
            print("✅ MongoDB connection established for route storage")
        except PyMongoError as e:
            print(f"⚠️ MongoDB not available, routes will not be stored: {e}")

    def store_route(self, route: RouteCandidate) -> Optional[Dict[str, Any]]:
        if not self.mongodb_available:
            return None

        start, end = route.origin, route.destination
        document = {
            "route_identifier": route.id,
            "label": route.label,
            "start_point": f"POINT({start[1]} {start[0]})",
            "end_point": f"POINT({end[1]} {end[0]})",
            "vibe_weights": route.weights.as_dict(),
            "path": to_wkt_linestring(route.coordinates),
            "total_distance": round(route.distance, 1),
            "estimated_duration": round(route.duration, 1),
            "vibe_score": route.vibe_score,
            "created_at": datetime.now(timezone.utc),
        }

        try:
            result = self.collection.insert_one(document)
        except PyMongoError as exc:
            print(f"⚠️ Error storing route in MongoDB: {exc}")
            return None

        stored = {key: value for key, value in document.items() if key != "_id"}
        stored["id"] = str(result.inserted_id)
        stored["created_at"] = document["created_at"].isoformat()
        return stored
