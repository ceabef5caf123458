from werkzeug.security import generate_password_hash, check_password_hash


def hash_password(password):
    return generate_password_hash(password)


def verify_password(password, password_hash):
    if not password or not password_hash:
        return False
    return check_password_hash(password_hash, password)
