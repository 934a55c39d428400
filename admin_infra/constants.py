"""Shared constants for the admin web hosting stack & its delivery pipeline."""

# Website documents
DEFAULT_INDEX_FILE = "index.html"
DEFAULT_ERROR_FILE = "index.html"
ROOT_PAGE_PATH = "/index.html"

# CloudFront error rewriting (status served -> status returned)
ERROR_RESPONSES = [
    {"http_status": 404, "response_http_status": 404},
    {"http_status": 403, "response_http_status": 500},
]
ERROR_RESPONSE_TTL_SECONDS = 300

# Pipeline stage & action names
STAGE_SOURCE = "Source"
STAGE_BUILD = "Build"
STAGE_DEPLOY = "Deploy"
ACTION_SOURCE = "GitHub_Source"
ACTION_BUILD = "CodeBuild"
ACTION_DEPLOY = "DeployToS3"

# Build
DEFAULT_BUILD_IMAGE = "STANDARD_7_0"
DEFAULT_OUTPUT_DIRECTORY = "dist"
INSTALL_COMMANDS = ['echo "installing npm dependencies"', "npm install"]
BUILD_COMMANDS = ['echo "building react app"', "npm run build"]
INVALIDATION_PATHS = "/*"

# Output keys
OUTPUT_CLOUDFRONT_URL = "cloudfront-web-url"
OUTPUT_BUCKET_URL = "s3-bucket-url"

# CDK context key used by app.py to pick a single environment
CONTEXT_ENVIRONMENT = "environment"
