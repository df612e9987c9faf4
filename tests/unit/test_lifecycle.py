"""
配送状态机：只能往后走，可以跳步。
"""
import pytest

from medilink.lifecycle import RIDER_SETTABLE_STATUSES, is_forward_delivery_step


@pytest.mark.parametrize('current, new', [
    ('assigned', 'picked_up'),
    ('assigned', 'delivered'),
    ('picked_up', 'in_transit'),
    ('in_transit', 'delivered'),
])
def test_forward_steps_allowed(current, new):
    assert is_forward_delivery_step(current, new)


@pytest.mark.parametrize('current, new', [
    ('picked_up', 'picked_up'),
    ('in_transit', 'picked_up'),
    ('delivered', 'in_transit'),
    ('pending', 'picked_up'),
    ('assigned', 'cancelled'),
])
def test_backward_or_unknown_steps_rejected(current, new):
    assert not is_forward_delivery_step(current, new)


def test_rider_cannot_set_assigned_directly():
    assert 'assigned' not in RIDER_SETTABLE_STATUSES
    assert RIDER_SETTABLE_STATUSES == ['picked_up', 'in_transit', 'delivered']
