import pytest
from sqlstore.exceptions import IdGenerationError, Phase
from sqlstore.hooks import DEFAULT_ROLE, DEFAULT_TARGET, IdHookRegistry


def test_register_and_generate():
    hooks = IdHookRegistry()
    key = hooks.register(DEFAULT_ROLE, DEFAULT_TARGET, lambda fields: 'abc')
    assert key == ('sql', 'postgresql-store')
    assert key in hooks
    assert hooks.generate('sql', 'postgresql-store', {'p1': 'v1'}) == 'abc'


def test_mapping_result():
    """Test a handler may answer with an id mapping"""
    hooks = IdHookRegistry()
    hooks.register('sql', 'store', lambda fields: {'id': 'test_1'})
    assert hooks.generate('sql', 'store', {}) == 'test_1'


def test_no_handler():
    assert IdHookRegistry().generate('sql', 'store', {}) is None


def test_replace_handler():
    """Test re-registration replaces the handler"""
    hooks = IdHookRegistry()
    hooks.register('sql', 'store', lambda fields: 'first')
    hooks.register('sql', 'store', lambda fields: 'second')
    assert len(hooks) == 1
    assert hooks.generate('sql', 'store', {}) == 'second'


def test_keys_are_independent():
    hooks = IdHookRegistry()
    hooks.register('sql', 'a', lambda fields: 'a')
    hooks.register('sql', 'b', lambda fields: 'b')
    assert hooks.generate('sql', 'b', {}) == 'b'
    hooks.unregister('sql', 'b')
    assert hooks.get('sql', 'b') is None
    assert hooks.generate('sql', 'a', {}) == 'a'


def test_handler_gets_copy():
    hooks = IdHookRegistry()

    def handler(fields):
        fields['mutated'] = True
        return 1

    hooks.register('sql', 'store', handler)
    fields = {'p1': 'v1'}
    hooks.generate('sql', 'store', fields)
    assert fields == {'p1': 'v1'}


def test_handler_failure():
    def handler(fields):
        raise RuntimeError('boom')

    hooks = IdHookRegistry()
    hooks.register('sql', 'store', handler)
    with pytest.raises(IdGenerationError, match='boom') as exc_info:
        hooks.generate('sql', 'store', {})
    assert exc_info.value.phase == Phase.BUILD
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.parametrize('result', [None, {}, {'id': None}])
def test_handler_without_id(result):
    hooks = IdHookRegistry()
    hooks.register('sql', 'store', lambda fields: result)
    with pytest.raises(IdGenerationError):
        hooks.generate('sql', 'store', {})


def test_register_not_callable():
    with pytest.raises(TypeError):
        IdHookRegistry().register('sql', 'store', 'nope')
