"""Mock responses for Twitter API integration tests."""

from __future__ import annotations

REST_ROOT = "https://api.twitter.com/1.1/"
TOKEN_URL = "https://api.twitter.com/oauth2/token"
UPLOAD_URL = "https://upload.twitter.com/1.1/media/upload.json"

BEARER_TOKEN_RESPONSE = {
    "token_type": "bearer",
    "access_token": "AAAAAAAAAAAAAAAAAAAAAMLheAAAAAAA0%2BuSeid%2BULvsea4JtiGRiSDSJSI%3DEUifiRBkKG5E2XzMDjRfl76ZC9Ub0wnz4XsNiRVBChTYbJcE3F",
}

HOME_TIMELINE_RESPONSE = [
    {
        "id": 1234567890,
        "id_str": "1234567890",
        "text": "Hello from integration test!",
        "user": {"id_str": "123456", "screen_name": "twitterapi"},
    },
    {
        "id": 1234567891,
        "id_str": "1234567891",
        "text": "Second tweet",
        "user": {"id_str": "789012", "screen_name": "twitterdev"},
    },
]

SHOW_STATUS_RESPONSE = {
    "id": 12345,
    "id_str": "12345",
    "text": "Test tweet",
    "created_at": "Mon Jan 01 00:00:00 +0000 2024",
}

SEARCH_TWEETS_RESPONSE = {
    "statuses": [
        {"id_str": "1111111111", "text": "First result"},
        {"id_str": "2222222222", "text": "Second result"},
    ],
    "search_metadata": {"count": 2, "query": "banana"},
}

NOT_FOUND_ERROR_RESPONSE = {
    "errors": [
        {
            "code": 144,
            "message": "No status found with that ID.",
        }
    ]
}

BAD_CREDENTIALS_ERROR_RESPONSE = {
    "errors": [
        {
            "code": 99,
            "label": "authenticity_token_error",
            "message": "Unable to verify your credentials",
        }
    ]
}

# Twitter API v1.1 media upload responses
MEDIA_UPLOAD_IMAGE_RESPONSE = {
    "media_id": 1234567890123456789,
    "media_id_string": "1234567890123456789",
    "media_key": "3_1234567890123456789",
    "size": 12345,
    "expires_after_secs": 86400,
    "image": {
        "image_type": "image/png",
        "w": 1200,
        "h": 675,
    },
}

MEDIA_UPLOAD_VIDEO_INIT_RESPONSE = {
    "media_id": 9876543210987654321,
    "media_id_string": "9876543210987654321",
    "media_key": "7_9876543210987654321",
    "expires_after_secs": 86400,
}

MEDIA_UPLOAD_VIDEO_FINALIZE_RESPONSE = {
    "media_id": 9876543210987654321,
    "media_id_string": "9876543210987654321",
    "media_key": "7_9876543210987654321",
    "size": 5242880,
    "expires_after_secs": 86400,
    "processing_info": {
        "state": "pending",
        "check_after_secs": 1,
    },
}

MEDIA_UPLOAD_VIDEO_STATUS_PROCESSING = {
    "media_id": 9876543210987654321,
    "media_id_string": "9876543210987654321",
    "processing_info": {
        "state": "in_progress",
        "check_after_secs": 1,
        "progress_percent": 50,
    },
}

MEDIA_UPLOAD_VIDEO_STATUS_SUCCEEDED = {
    "media_id": 9876543210987654321,
    "media_id_string": "9876543210987654321",
    "processing_info": {
        "state": "succeeded",
        "progress_percent": 100,
    },
    "video": {
        "video_type": "video/mp4",
    },
}

# Rate limit error response
RATE_LIMIT_ERROR_RESPONSE = {
    "errors": [
        {
            "message": "Rate limit exceeded",
            "code": 88,
        }
    ]
}
