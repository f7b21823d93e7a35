import bcrypt


def get_password_hash(password: str) -> str:
    """bcrypt 해시 문자열을 반환한다."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # 저장된 값이 bcrypt 해시 형식이 아님
        return False
