from solarproposal.report.text_metrics import measure_text_width, tokenize, wrap_lines


def test_measure_text_width_grows_with_size(fonts):
    small = measure_text_width('Geração', font_name=fonts.regular.name, font_size=10)
    large = measure_text_width('Geração', font_name=fonts.regular.name, font_size=20)
    assert small > 0
    assert abs(large - 2 * small) < 1e-6


def test_measure_empty_text_is_zero(fonts):
    assert fonts.regular.width('', 12) == 0.0


def test_wrap_empty_text_returns_no_lines(fonts):
    assert wrap_lines('', 200, fonts.regular, 10) == []
    assert wrap_lines('   \n\t ', 200, fonts.regular, 10) == []


def test_wrap_respects_width_and_keeps_words(fonts):
    text = 'Sistema fotovoltaico conectado à rede com inversor string e monitoramento remoto'
    lines = wrap_lines(text, 120, fonts.regular, 10)

    assert len(lines) > 1
    assert ' '.join(lines) == text
    for line in lines:
        assert fonts.regular.width(line, 10) <= 120


def test_wrap_collapses_whitespace(fonts):
    lines = wrap_lines('um   dois\n\ntrês', 500, fonts.regular, 10)
    assert lines == ['um dois três']


def test_wrap_overlong_word_gets_its_own_line(fonts):
    word = 'Supercalifragilisticexpialidocious'
    lines = wrap_lines(f'a {word} b', 40, fonts.regular, 10)

    assert lines == ['a', word, 'b']
    assert fonts.regular.width(word, 10) > 40


def test_wrap_is_idempotent(fonts):
    text = 'Garantia de 25 anos de performance linear para os módulos fotovoltaicos'
    first = wrap_lines(text, 150, fonts.regular, 10)
    rewrapped = [line for chunk in first for line in wrap_lines(chunk, 150, fonts.regular, 10)]
    assert rewrapped == first


def test_tokenize_drops_empty_tokens():
    assert tokenize('  a  b ') == ['a', 'b']
    assert tokenize(None) == []
