# rotate_encryption_key.py
import sys
from dotenv import load_dotenv
load_dotenv()

from finance_api.core.config import settings
from finance_api.core.errors import EncryptionError
from finance_api.db.store import JsonStore
from finance_api.services.encryption import reencrypt_access_tokens


def rotate_key(old_key: str, new_key: str, db_path: str = None):
    """Re-encrypt every stored Plaid access token. Nothing is written unless all tokens decrypt."""
    store = JsonStore(db_path or settings.DB_PATH).load()
    try:
        with store.session() as db:
            rotated = reencrypt_access_tokens(db, old_key, new_key)
    except EncryptionError as e:
        print("Key rotation failed:", e)
        return 1
    print(f"Re-encrypted {rotated} access token(s). Set PLAID_ENCRYPTION_KEY to the new key.")
    return 0

if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python rotate_encryption_key.py <old_key_hex> <new_key_hex>")
        sys.exit(2)
    old_key = sys.argv[1]
    new_key = sys.argv[2]
    sys.exit(rotate_key(old_key, new_key))
