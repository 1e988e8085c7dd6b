"""
Endpoint roots and fixed request policy values.
"""

REST_ROOT = "https://api.twitter.com/1.1/"
PUB_STREAM = "https://stream.twitter.com/1.1/"
USER_STREAM = "https://userstream.twitter.com/1.1/"
SITE_STREAM = "https://sitestream.twitter.com/1.1/"
MEDIA_UPLOAD = "https://upload.twitter.com/1.1/"
OAUTH2_TOKEN = "https://api.twitter.com/oauth2/token"

STREAM_ENDPOINTS = {
    "user": USER_STREAM,
    "site": SITE_STREAM,
}

MEDIA_UPLOAD_PATH = "media/upload"

# REST resources that take a multipart form body instead of a query string
FORMDATA_PATHS = (
    MEDIA_UPLOAD_PATH,
    "account/update_profile_image",
    "account/update_profile_background_image",
)

STATUS_CODES_TO_ABORT_ON = (400, 401, 403, 404, 406, 410, 422)

# Key holding per-call behaviour flags inside a params mapping
CALL_OPTIONS_KEY = "twit_options"

RATE_LIMIT_ERROR_CODE = 88

UPLOAD_CHUNK_BYTES = 5 * 1024 * 1024
UPLOAD_MAX_BYTES = 512 * 1024 * 1024
