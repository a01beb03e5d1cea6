import os

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'your-secret-key-here-make-it-long'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///rosca.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 'sql' (SQLALCHEMY_DATABASE_URI) or 'json' (ROSCA_JSON_PATH)
    ROSCA_STORAGE = os.environ.get('ROSCA_STORAGE', 'sql')
    ROSCA_JSON_PATH = os.environ.get('ROSCA_JSON_PATH') or \
        os.path.join(basedir, 'instance', 'rosca.json')

    # Don't charge members for periods that closed before they joined
    ROSCA_EXEMPT_PRE_JOIN_PERIODS = _env_flag('ROSCA_EXEMPT_PRE_JOIN_PERIODS', True)

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    ROSCA_STORAGE = 'sql'
    LOG_LEVEL = 'WARNING'
