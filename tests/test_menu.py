import pytest

from tragedia.menu import Layer, Menu, Option, OptionType


def build_menu():
    menu = Menu()
    menu.root.add_option(Option(1, OptionType.RETURN, "Back"))
    help_opt = Option(2, OptionType.ENTER, "Help")
    help_opt.sub_layer = Layer()
    help_opt.sub_layer.add_option(Option(0, OptionType.RETURN, "Walk"))
    help_opt.sub_layer.add_option(Option(5, OptionType.RETURN, "Act"))
    menu.root.add_option(help_opt)
    exit_opt = Option(3, OptionType.ENTER, "Exit")
    exit_opt.sub_layer = Layer()
    exit_opt.sub_layer.add_option(Option(4, OptionType.RETURN, "No"))
    exit_opt.sub_layer.add_option(Option(6, OptionType.ACTION, "Yes"))
    menu.root.add_option(exit_opt)
    return menu


def test_next_and_prev_wrap():
    menu = build_menu()
    menu.prev()
    assert menu.option.tag == 3
    menu.next()
    assert menu.option.tag == 1
    menu.next()
    assert menu.option.tag == 2


def test_first_and_last():
    menu = build_menu()
    menu.last()
    assert menu.option.tag == 3
    menu.first()
    assert menu.option.tag == 1


def test_enter_sub_layer_and_return():
    menu = build_menu()
    menu.next()
    menu.down()
    assert menu.layer is menu.get_option_by_tag(2).sub_layer
    assert menu.option.tag == 0
    menu.down()
    assert menu.layer is menu.root
    assert not menu.exited


def test_up_from_root_exits_and_blocks():
    menu = build_menu()
    menu.up()
    assert menu.exited
    assert menu.blocked
    menu.next()
    assert menu.option.tag == 1


def test_action_blocks_until_unlocked():
    menu = build_menu()
    menu.last()
    menu.down()
    menu.next()
    menu.down()
    assert menu.blocked
    assert menu.option.tag == 6
    menu.prev()
    assert menu.option.tag == 6
    menu.unlock()
    menu.prev()
    assert menu.option.tag == 4


def test_get_option_by_tag():
    menu = build_menu()
    assert menu.get_option_by_tag(6).name == "Yes"
    assert menu.get_option_by_tag(5).name == "Act"
    assert menu.get_option_by_tag(99) is None


def test_render_text_marks_selection():
    menu = build_menu()
    menu.next()
    assert menu.render_text() == "Back\n[Help]\nExit"
    assert menu.redraw is False
    menu.next()
    assert menu.redraw is True


def test_render_text_shows_value():
    menu = Menu()
    volume = Option(7, OptionType.VALUE, "Volume")
    volume.init_value(0.0, 100.0, 1.0)
    menu.root.add_option(volume)
    assert menu.render_text() == "[Volume: 50]"


def test_value_increment_and_decrement_clamp():
    opt = Option(1, OptionType.VALUE, "v")
    opt.init_value(0.0, 10.0, 4.0)
    assert opt.val == 5.0
    opt.increment()
    opt.increment()
    assert opt.val == 10.0
    for _ in range(5):
        opt.decrement()
    assert opt.val == 0.0


def test_increment_ignored_for_non_value():
    opt = Option(1, OptionType.ACTION, "a")
    opt.init_value(0.0, 10.0, 4.0)
    opt.increment()
    assert opt.val == 5.0


def test_menu_increment_targets_selected_option():
    menu = Menu()
    opt = Option(1, OptionType.VALUE, "v")
    opt.init_value(0.0, 2.0, 0.5)
    menu.root.add_option(opt)
    menu.increment()
    assert opt.val == 1.5
    menu.decrement()
    menu.decrement()
    assert opt.val == 0.5


def test_layer_remove_option_keeps_selection():
    layer = Layer()
    for tag in range(4):
        layer.add_option(Option(tag, OptionType.ACTION))
    layer.select(2)
    layer.remove_option(0)
    assert layer.current.tag == 2
    layer.remove_option(len(layer) - 1)
    assert layer.current.tag == 2


def test_layer_select_wraps():
    layer = Layer()
    for tag in range(3):
        layer.add_option(Option(tag, OptionType.ACTION))
    layer.select(4)
    assert layer.current.tag == 1
    layer.select(-1)
    assert layer.current.tag == 2


def test_option_at_wraps_and_empty_raises():
    layer = Layer()
    with pytest.raises(IndexError):
        layer.option_at(0)
    layer.add_option(Option(10, OptionType.ACTION))
    layer.add_option(Option(11, OptionType.ACTION))
    assert layer.option_at(3).tag == 11


def test_clear_resets_menu():
    menu = build_menu()
    menu.up()
    menu.clear()
    assert not menu.blocked
    assert not menu.exited
    assert len(menu.root) == 0
    assert menu.stack == [menu.root]