import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Path to Firebase service account JSON
FIREBASE_CRED_PATH = os.getenv("FIREBASE_CRED_JSON", "./firebase-adminsdk.json")
FIREBASE_DB_URL = os.getenv("FIREBASE_DB_URL", "")

ADMIN_KEY = os.getenv("ADMIN_API_KEY")

# Header carrying a preview time for promotions (honoured only with preview permission)
PROMOTION_PREVIEW_HEADER = os.getenv("PROMOTION_PREVIEW_HEADER", "x-custom-current-promotion-time")

# Number of cart ids handed to one re-evaluation job
CART_BATCH_SIZE = int(os.getenv("CART_BATCH_SIZE", "500"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://127.0.0.1:5500").split(",") if o.strip()]
