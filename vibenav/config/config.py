from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # API configuration
    api_version: str = "1.0"
    max_alternatives: int = 4

    # "synthetic" draws stylized routes locally, "engine" asks the routing engine
    routing_mode: str = "synthetic"

    # Valhalla-compatible routing engine
    valhalla_url: str = "http://localhost:8002"

    # PostGIS feature lookup (RPC endpoint returning per-maneuver features)
    feature_service_url: str = "http://localhost:54321/rest/v1/rpc/get_path_features"
    feature_service_key: str = ""

    # External call limits
    http_timeout_seconds: float = 10.0
    recalculation_timeout_seconds: float = 8.0

    # Vibe weight table (emotions, penalties, thresholds)
    vibe_weights_path: str = ""

    # Off-route detection, tunable heuristics
    off_route_distance_m: float = 30.0
    off_route_heading_deg: float = 45.0
    off_route_hard_distance_m: float = 50.0

    # Graduated turn feedback
    turn_haptic_distance_m: float = 50.0
    turn_voice_distance_m: float = 30.0
    turn_complete_distance_m: float = 10.0

    # MongoDB configuration for route, feedback and emotion storage
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "vibenav"
    mongo_routes_collection: str = "routes"
    mongo_feedback_collection: str = "route_feedback"
    mongo_emotions_collection: str = "emotions"

    # Recalculation reuses a cached route starting this close to the walker
    recalculation_cache_radius_m: float = 100.0
    recalculation_cache_min_vibe_score: float = 0.7

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
