"""HTTP API for SceneScribe."""
