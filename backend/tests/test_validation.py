from quiestleplus.config import Config
from quiestleplus.realtime import validation


def test_validate_name():
    assert validation.validate_name('  Alice ') == 'Alice'
    assert validation.validate_name('') is None
    assert validation.validate_name('   ') is None
    assert validation.validate_name('x' * 21) is None
    assert validation.validate_name('<script>') is None
    assert validation.validate_name('a\x00b') is None
    assert validation.validate_name(42) is None


def test_normalize_avatar():
    data_url = 'data:image/png;base64,iVBORw0KGgo='
    assert validation.normalize_avatar(data_url) == data_url
    assert validation.normalize_avatar('https://example.com/a.png') == 'https://example.com/a.png'
    assert validation.normalize_avatar('javascript:alert(1)') is None
    assert validation.normalize_avatar(data_url, max_bytes=10) is None
    assert validation.normalize_avatar(None) is None


def test_normalize_code():
    assert validation.normalize_code(' ab12cd ') == 'AB12CD'
    assert validation.normalize_code('') is None
    assert validation.normalize_code('AB-12') is None
    assert validation.normalize_code(None) is None


def test_validate_adjective():
    assert validation.validate_adjective('  très   drôle ') == 'très drôle'
    assert validation.validate_adjective('') is None
    assert validation.validate_adjective('x' * 81) is None
    assert validation.validate_adjective('<b>') is None


def test_parse_index():
    assert validation.parse_index(2) == 2
    assert validation.parse_index('3') == 3
    assert validation.parse_index('x') is None
    assert validation.parse_index(None) is None
    assert validation.parse_index(True) is None


def test_parse_settings_accepts_bounds():
    settings = validation.parse_settings(
        {'numberOfQuestions': 5, 'categories': ['soft', 'hard', 'soft'], 'questionTime': 10},
        Config,
    )
    assert settings.number_of_questions == 5
    assert settings.categories == ['soft', 'hard']
    assert settings.question_time == 10


def test_parse_settings_rejects_out_of_range():
    assert validation.parse_settings({'numberOfQuestions': 4, 'categories': ['soft']}, Config) is None
    assert validation.parse_settings({'numberOfQuestions': 31, 'categories': ['soft']}, Config) is None
    assert validation.parse_settings({'numberOfQuestions': 10, 'categories': ['soft'], 'questionTime': 5}, Config) is None
    assert validation.parse_settings({'numberOfQuestions': 10, 'categories': []}, Config) is None
    assert validation.parse_settings({'numberOfQuestions': 10, 'categories': ['nope']}, Config) is None
    assert validation.parse_settings({'numberOfQuestions': 'ten', 'categories': ['soft']}, Config) is None
    assert validation.parse_settings(None, Config) is None


def test_parse_settings_custom_is_exclusive():
    settings = validation.parse_settings({'numberOfQuestions': 5, 'categories': ['soft', 'custom']}, Config)
    assert settings.categories == ['custom']
    assert settings.uses_custom_questions
    assert settings.question_time == Config.DEFAULT_QUESTION_TIME


def test_parse_settings_reads_flask_config_mapping():
    config = {
        'DEFAULT_QUESTION_TIME': 30,
        'MIN_QUESTIONS': 5,
        'MAX_QUESTIONS': 30,
        'MIN_QUESTION_TIME': 10,
        'MAX_QUESTION_TIME': 120,
    }
    settings = validation.parse_settings({'numberOfQuestions': 12, 'categories': ['hard']}, config)
    assert settings.number_of_questions == 12
    assert settings.question_time == 30
