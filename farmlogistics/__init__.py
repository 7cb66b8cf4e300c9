from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
import os
from farmlogistics.utils.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app():
    from pathlib import Path

    app = Flask(__name__)

    # Get singleton logger
    logger = get_logger("farm_logistics")
    logger.info("Initializing Flask application")

    # Configuration
    # SECURITY: Require SECRET_KEY in environment - no fallback
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    # Prefer an explicit DATABASE_URL env var; otherwise keep the SQLite
    # database inside the project's `instance/` directory.
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'farm_logistics.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Warehousing thresholds
    app.config['LOW_STOCK_THRESHOLD'] = int(os.environ.get('LOW_STOCK_THRESHOLD', '50'))
    app.config['NEAR_CAPACITY_PERCENT'] = float(os.environ.get('NEAR_CAPACITY_PERCENT', '90'))

    # Serialize capacity-affecting operations per warehouse location.
    # Set to False to get the unguarded check-then-act behaviour back.
    app.config['CAPACITY_SERIALIZATION'] = _env_flag('CAPACITY_SERIALIZATION', 'True')

    if not app.config['CAPACITY_SERIALIZATION']:
        logger.warning("Capacity serialization DISABLED - concurrent allocations may overcommit warehouses")

    logger.debug(f"Database configured: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]}")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from farmlogistics.data.core.user_info.user import User
    from farmlogistics.data.warehousing.warehouse import Warehouse
    from farmlogistics.data.warehousing.inventory_lot import InventoryLot
    from farmlogistics.data.warehousing.outgoing_dispatch import OutgoingDispatch
    from farmlogistics.data.logistics.delivery import Delivery
    from farmlogistics.data.logistics.order import Order, OrderReservation

    logger.debug("Models imported and registered")

    logger.info("Flask application initialization complete")

    return app
