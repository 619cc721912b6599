"""Configuration constants for language-model content generation."""

import os

# LLM Configuration
DEFAULT_OLLAMA_BASE_URL = os.environ.get("OLLAMA_HOST", "http://localhost:11434")
# Tried in order until one answers
DEFAULT_CONTENT_MODELS = ("llama3.2:3b", "qwen2.5:7b", "mistral:7b")
DEFAULT_OLLAMA_TIMEOUT = 120.0  # seconds
DEFAULT_OLLAMA_TEMPERATURE = 0.2

# Social posts
MAX_POST_LENGTH = 280
TRUNCATED_POST_LENGTH = 275
TRUNCATION_SUFFIX = "..."

# Response schemas
FILTER_SEGMENTS_SCHEMA = {
    "type": "object",
    "properties": {
        "filtered_transcription": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "start": {"type": "number"},
                    "end": {"type": "number"},
                    "text": {"type": "string"},
                },
                "required": ["start", "end", "text"],
            },
        }
    },
    "required": ["filtered_transcription"],
}

TOPIC_SUGGESTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "topic_suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "start_segment": {"type": "integer"},
                    "end_segment": {"type": "integer"},
                    "key_points": {"type": "array", "items": {"type": "string"}},
                    "social_media_appeal": {"type": "string"},
                },
                "required": [
                    "title",
                    "description",
                    "start_segment",
                    "end_segment",
                    "key_points",
                    "social_media_appeal",
                ],
            },
        }
    },
    "required": ["topic_suggestions"],
}

SOCIAL_POST_SCHEMA = {
    "type": "object",
    "properties": {
        "twitter_post": {
            "type": "object",
            "properties": {
                "main_post": {"type": "string"},
                "alternative_posts": {"type": "array", "items": {"type": "string"}},
                "hashtags": {"type": "array", "items": {"type": "string"}},
                "hook_style": {"type": "string"},
            },
            "required": ["main_post", "alternative_posts", "hashtags", "hook_style"],
        }
    },
    "required": ["twitter_post"],
}

# Prompt templates
FILTER_SEGMENTS_PROMPT = """You are given a JSON transcription of a video as an array of objects with 'start' (seconds), 'end' (seconds) and 'text'.

Remove segments that are redundant, duplicate or mistaken. When two or more segments say the same thing, even if rephrased or cut off, keep only the last occurrence.

Respond with this JSON only:
{"filtered_transcription": [{"start": 15.84, "end": 24.17, "text": "..."}]}
Keep the remaining segments in chronological order."""

TOPIC_IDENTIFICATION_PROMPT = """You are given a JSON transcription of a video as an array of segments with 'start', 'end' and 'text'.

Identify 3-5 coherent sections that work as standalone social media clips. Each section is a range of consecutive segments by 0-based index, covers a complete idea, and typically lasts 30 seconds to 2 minutes.

Respond with this JSON only:
{"topic_suggestions": [{"title": "...", "description": "...", "start_segment": 2, "end_segment": 8, "key_points": ["..."], "social_media_appeal": "..."}]}
Prefer 3 excellent suggestions over 5 mediocre ones."""

SOCIAL_POST_PROMPT = """You are given video segment transcriptions and a topic with a title, description and key points.

Write an engaging Twitter/X post about the topic: a main post under 280 characters that opens with a hook (question, statistic, controversial take, story, listicle or problem/solution), 2-3 alternative posts with different angles, and 3-5 relevant hashtags.

Respond with this JSON only:
{"twitter_post": {"main_post": "...", "alternative_posts": ["..."], "hashtags": ["#..."], "hook_style": "question"}}"""
