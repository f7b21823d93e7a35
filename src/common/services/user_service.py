from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from src.common.models.user import User
from src.common.models.watchlist import Watchlist
from src.common.schemas.user import UserCreate, UserUpdate
from src.common.utils.exceptions import InvalidCredentialsException, UserAlreadyExistsException
from src.common.utils.password_utils import get_password_hash, verify_password
import logging

logger = logging.getLogger(__name__)


class UserService:
    def get_user_by_id(self, db: Session, user_id: int):
        logger.debug(f"get_user_by_id 호출: user_id={user_id}")
        return db.query(User).filter(User.id == user_id).first()

    def get_user_by_username(self, db: Session, username: str):
        logger.debug(f"get_user_by_username 호출: username={username}")
        return db.query(User).filter(User.username == username).first()

    def get_user_by_email(self, db: Session, email: str):
        logger.debug(f"get_user_by_email 호출: email={email}")
        return db.query(User).filter(User.email == email).first()

    def create_user(self, db: Session, user: UserCreate):
        logger.debug(f"create_user 호출: username={user.username}, email={user.email}")
        existing_user = db.query(User).filter(
            (User.username == user.username) | (User.email == user.email)
        ).first()
        if existing_user:
            raise UserAlreadyExistsException("Username or email already registered")

        db_user = User(
            username=user.username,
            email=user.email,
            hashed_password=get_password_hash(user.password),
            full_name=user.full_name,
        )
        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
            logger.info(f"사용자 생성 성공: username={user.username}, id={db_user.id}")
            return db_user
        except IntegrityError as e:
            db.rollback()
            logger.error(f"사용자 생성 중 중복 오류: {e}", exc_info=True)
            raise UserAlreadyExistsException("Username or email already registered")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"사용자 생성 실패: {e}", exc_info=True)
            raise

    def authenticate_user(self, db: Session, username: str, password: str):
        """사용자 인증. 실패 시 InvalidCredentialsException"""
        user = self.get_user_by_username(db, username)
        if not user or not verify_password(password, user.hashed_password):
            logger.debug(f"로그인 실패: username={username}")
            raise InvalidCredentialsException("Incorrect username or password")
        if not user.is_active:
            raise InvalidCredentialsException("Inactive user")
        return user

    def update_user(self, db: Session, user_id: int, user_update: UserUpdate):
        logger.debug(f"update_user 호출: user_id={user_id}, update_data={user_update.model_dump(exclude_unset=True)}")
        db_user = self.get_user_by_id(db, user_id)
        if not db_user:
            return None

        update_data = user_update.model_dump(exclude_unset=True)
        if update_data.get("email") is not None:
            update_data["email"] = update_data["email"].strip().lower()
            taken = db.query(User).filter(User.email == update_data["email"], User.id != user_id).first()
            if taken:
                raise UserAlreadyExistsException("Email is already registered to another account")
        for key, value in update_data.items():
            setattr(db_user, key, value)

        try:
            db.commit()
            db.refresh(db_user)
            logger.info(f"사용자 정보 수정 성공: user_id={user_id}")
            return db_user
        except IntegrityError as e:
            db.rollback()
            logger.error(f"사용자 정보 수정 중 중복 오류: {e}", exc_info=True)
            raise UserAlreadyExistsException("Email is already registered to another account")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"사용자 정보 수정 실패: {e}", exc_info=True)
            raise

    def change_password(self, db: Session, user_id: int, current_password: str, new_password: str):
        """현재 비밀번호 확인 후 변경. 확인 실패 시 InvalidCredentialsException"""
        db_user = self.get_user_by_id(db, user_id)
        if not db_user or not verify_password(current_password, db_user.hashed_password):
            logger.info(f"비밀번호 변경 거부: user_id={user_id}")
            raise InvalidCredentialsException("Current password is incorrect")

        db_user.hashed_password = get_password_hash(new_password)
        try:
            db.commit()
            logger.info(f"비밀번호 변경 성공: user_id={user_id}")
            return db_user
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"비밀번호 변경 실패: {e}", exc_info=True)
            raise

    def delete_user(self, db: Session, user_id: int) -> bool:
        """계정 삭제. 거래 기록과 관심 종목도 함께 지운다."""
        db_user = self.get_user_by_id(db, user_id)
        if not db_user:
            return False
        try:
            db.query(Watchlist).filter(Watchlist.user_id == user_id).delete(synchronize_session=False)
            db.delete(db_user)  # trades는 cascade로 삭제
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"계정 삭제 실패: user_id={user_id}, error={e}", exc_info=True)
            raise
        logger.info(f"계정 삭제 완료: user_id={user_id}")
        return True


def get_user_service():
    return UserService()
