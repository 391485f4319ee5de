"""OCDian mobile app -- Kivy-based touch interface.

Reuses the core ocdian modules (stores, timers, coping, insights, charts)
with three main sections: Journal, Relaxation and ERP, plus a mood
check-in screen.  Kivy's ``Clock`` is the tick scheduler for every timer.
"""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path

# Ensure the parent package is importable when running standalone on desktop
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from kivy.app import App
from kivy.clock import Clock
from kivy.core.image import Image as CoreImage
from kivy.lang import Builder
from kivy.metrics import dp, sp
from kivy.properties import BooleanProperty, NumericProperty, StringProperty
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.image import Image as KivyImage
from kivy.uix.label import Label
from kivy.uix.popup import Popup
from kivy.uix.screenmanager import Screen, ScreenManager, SlideTransition
from kivy.uix.textinput import TextInput
from kivy.uix.togglebutton import ToggleButton
from kivy.uix.widget import Widget

from PIL import Image as PILImage
from plyer import vibrator

from ocdian import config as cfg
from ocdian import db
from ocdian.charts import mood_timeseries
from ocdian.coping import COPING_TIPS, match_category, match_strategies
from ocdian.encouragement import get_reassurance
from ocdian.insights import average_mood, most_common_triggers, recent_mood_series
from ocdian.journal import JournalStore
from ocdian.models import ErpSessionCreate, PhaseKind, TimerSnapshot, TimerState, Trigger
from ocdian.mood import MoodStore
from ocdian.timer import (
    BREATHE_IN,
    ERP_DURATIONS,
    BodyScanExercise,
    BreathingExercise,
    ErpTimer,
    format_time,
)

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_ACCENT = (0.0, 0.392, 0.0, 1)            # #006400
_TEXT = (0.149, 0.196, 0.220, 1)          # #263238
_MUTED = (0.690, 0.745, 0.773, 1)         # #B0BEC5

_VIBRATE_SECONDS = 0.5


def _pil_to_kivy_image(pil_img: PILImage.Image) -> CoreImage:
    """Convert a PIL Image to a Kivy CoreImage (texture source)."""
    buf = io.BytesIO()
    pil_img.save(buf, format="png")
    buf.seek(0)
    return CoreImage(buf, ext="png")


def _make_label(text, **kw):
    """Create a self-sizing Label with text wrapping."""
    defaults = dict(
        font_size=sp(14), color=_TEXT,
        size_hint_y=None, text_size=(None, None), halign="left", valign="top",
    )
    defaults.update(kw)
    lbl = Label(text=text, **defaults)
    lbl.bind(width=lambda i, w: setattr(i, "text_size", (w - dp(8), None)))
    lbl.bind(texture_size=lambda i, ts: setattr(i, "height", ts[1] + dp(8)))
    return lbl


def _show_msg(title, text):
    content = BoxLayout(orientation="vertical", padding=10, spacing=10)
    content.add_widget(_make_label(text, color=(1, 1, 1, 1)))
    btn = Button(text="OK", size_hint_y=None, height=dp(44))
    popup = Popup(title=title, content=content, size_hint=(0.85, 0.45))
    btn.bind(on_release=lambda _: popup.dismiss())
    content.add_widget(btn)
    popup.open()


def _completion_signal():
    """Short vibration when an exercise finishes; log only where there is no vibrator."""
    log.info("Exercise complete")
    try:
        vibrator.vibrate(time=_VIBRATE_SECONDS)
    except NotImplementedError:
        log.debug("No vibrator on this platform")


# ---------------------------------------------------------------------------
# Kivy UI definition (KV language)
# ---------------------------------------------------------------------------

KV = """
#:import get_color_from_hex kivy.utils.get_color_from_hex
#:import dp kivy.metrics.dp
#:import sp kivy.metrics.sp

<Screen>:
    canvas.before:
        Color:
            rgba: get_color_from_hex('#E4F0F2')
        Rectangle:
            pos: self.pos
            size: self.size

<GreenButton@Button>:
    background_color: get_color_from_hex('#006400')
    font_size: sp(14)
    size_hint_y: None
    height: dp(44)
    bold: True

<Title@Label>:
    color: get_color_from_hex('#263238')
    font_size: sp(24)
    bold: True
    size_hint_y: None
    height: dp(48)

<Toolbar>:
    size_hint_y: None
    height: dp(44)
    spacing: dp(2)
    padding: [dp(2), dp(2)]
    canvas.before:
        Color:
            rgba: get_color_from_hex('#FFFFFF')
        Rectangle:
            pos: self.pos
            size: self.size
    Button:
        text: 'Tracker'
        background_color: get_color_from_hex('#006400')
        on_release: root.go('journal')
    Button:
        text: 'Mood'
        background_color: get_color_from_hex('#B0BEC5')
        on_release: root.go('mood')
    Button:
        text: 'Relaxation'
        background_color: get_color_from_hex('#B0BEC5')
        on_release: root.go('relaxation')
    Button:
        text: 'ERP'
        background_color: get_color_from_hex('#B0BEC5')
        on_release: root.go('erp')

<JournalScreen>:
    BoxLayout:
        orientation: 'vertical'
        Toolbar:
        Title:
            text: 'OCD Tracker'
        Label:
            text: 'Track your thoughts and compulsions'
            color: get_color_from_hex('#607D8B')
            size_hint_y: None
            height: dp(24)
        BoxLayout:
            size_hint_y: None
            height: dp(48)
            padding: [dp(8), dp(2)]
            spacing: dp(6)
            TextInput:
                id: entry_input
                hint_text: 'Log your obsession/compulsion'
                multiline: False
                on_text_validate: root.add_entry()
            GreenButton:
                text: '+'
                size_hint_x: None
                width: dp(56)
                on_release: root.add_entry()
        ScrollView:
            do_scroll_x: False
            BoxLayout:
                id: entry_list
                orientation: 'vertical'
                size_hint_y: None
                height: self.minimum_height
                spacing: dp(6)
                padding: [dp(8), dp(6)]
        GreenButton:
            text: 'Delete all'
            background_color: get_color_from_hex('#9f6a6a')
            on_release: root.confirm_delete_all()

<MoodScreen>:
    BoxLayout:
        orientation: 'vertical'
        Toolbar:
        ScrollView:
            do_scroll_x: False
            BoxLayout:
                id: content
                orientation: 'vertical'
                size_hint_y: None
                height: self.minimum_height
                padding: [dp(12), dp(8)]
                spacing: dp(6)

<RelaxationScreen>:
    BoxLayout:
        orientation: 'vertical'
        Toolbar:
        Label:
            text: root.message
            color: get_color_from_hex('#263238')
            font_size: sp(30)
            size_hint_y: None
            height: dp(60)
        Label:
            text: root.counter
            color: get_color_from_hex('#006400')
            font_size: sp(60)
            size_hint_y: None
            height: dp(90)
        ProgressBar:
            value: root.progress
            max: 100
            size_hint_y: None
            height: dp(8)
        Widget:
        BoxLayout:
            size_hint_y: None
            height: dp(48)
            spacing: dp(8)
            padding: [dp(8), dp(2)]
            GreenButton:
                text: 'Restart' if root.running else 'Breathe'
                on_release: root.start_breathing()
            GreenButton:
                text: 'Body scan'
                background_color: get_color_from_hex('#5a8a5a')
                on_release: root.start_body_scan()
            GreenButton:
                text: 'Stop'
                background_color: get_color_from_hex('#9f6a6a')
                on_release: root.stop()
        GreenButton:
            text: 'Back'
            opacity: 1 if root.show_back else 0
            disabled: not root.show_back
            on_release: root.go_back()

<ErpScreen>:
    BoxLayout:
        orientation: 'vertical'
        Toolbar:
        ScrollView:
            do_scroll_x: False
            BoxLayout:
                id: content
                orientation: 'vertical'
                size_hint_y: None
                height: self.minimum_height
                padding: [dp(12), dp(8)]
                spacing: dp(6)
                Title:
                    text: 'ERP Exercise'
                TextInput:
                    id: challenge_input
                    hint_text: 'Enter Exposure Challenge'
                    multiline: False
                    size_hint_y: None
                    height: dp(44)
                Label:
                    text: 'Select Duration:'
                    color: get_color_from_hex('#263238')
                    size_hint_y: None
                    height: dp(28)
                BoxLayout:
                    id: duration_row
                    size_hint_y: None
                    height: dp(44)
                    spacing: dp(4)
                Label:
                    text: 'Time Remaining: ' + root.time_text
                    color: get_color_from_hex('#263238')
                    font_size: sp(20)
                    size_hint_y: None
                    height: dp(40)
                GreenButton:
                    text: 'Stop' if root.running else 'Start'
                    background_color: get_color_from_hex('#cc3333') if root.running else get_color_from_hex('#1e66d0')
                    on_release: root.toggle_timer()
                BoxLayout:
                    id: rating_box
                    orientation: 'vertical'
                    size_hint_y: None
                    height: self.minimum_height
                    spacing: dp(4)
                BoxLayout:
                    size_hint_y: None
                    height: dp(48)
                    spacing: dp(12)
                    GreenButton:
                        text: 'Coping Tips'
                        on_release: root.show_tips()
                    GreenButton:
                        text: 'Panic Button'
                        background_color: get_color_from_hex('#e08a00')
                        on_release: root.panic()
"""


# ---------------------------------------------------------------------------
# Custom widgets
# ---------------------------------------------------------------------------


class Toolbar(BoxLayout):
    """Top navigation bar present on every screen."""

    _ORDER = ["journal", "mood", "relaxation", "erp"]

    def go(self, screen_name):
        sm = App.get_running_app().root
        here = self._ORDER.index(sm.current) if sm.current in self._ORDER else 0
        there = self._ORDER.index(screen_name)
        sm.transition = SlideTransition(direction="left" if there >= here else "right")
        sm.current = screen_name


def _rating_row(values, selected, on_select, group):
    """A row of toggle buttons; exactly one value stays selected."""
    row = BoxLayout(size_hint_y=None, height=dp(40), spacing=dp(2))
    for v in values:
        btn = ToggleButton(
            text=str(v), group=group, allow_no_selection=False,
            state="down" if v == selected else "normal",
        )
        btn.bind(on_release=lambda _, val=v: on_select(val))
        row.add_widget(btn)
    return row


# ---------------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------------


class JournalScreen(Screen):
    """Obsession log with compulsions and matched coping strategies."""

    def on_enter(self):
        app = App.get_running_app()
        app.journal.subscribe(self._render)
        self._render(app.journal)

    def on_leave(self):
        App.get_running_app().journal.unsubscribe(self._render)

    def add_entry(self):
        ti = self.ids.entry_input
        if App.get_running_app().journal.add_entry(ti.text) is not None:
            ti.text = ""

    def _render(self, store):
        box = self.ids.entry_list
        box.clear_widgets()
        for index, entry in enumerate(store.entries):
            card = BoxLayout(orientation="vertical", size_hint_y=None, spacing=dp(2))
            card.bind(minimum_height=card.setter("height"))
            card.add_widget(_make_label(entry.obsession, font_size=sp(15)))
            if entry.compulsion:
                card.add_widget(_make_label(f"Compulsion: {entry.compulsion}", font_size=sp(12), color=_ACCENT))
            actions = BoxLayout(size_hint_y=None, height=dp(36), spacing=dp(4))
            for text, handler in (
                ("Compulsion", lambda _, e=entry: self._attach_dialog(e)),
                ("Strategies", lambda _, e=entry: self._show_strategies(e)),
                ("Delete", lambda _, i=index: App.get_running_app().journal.delete_entry(i)),
            ):
                btn = Button(text=text, font_size=sp(12))
                btn.bind(on_release=handler)
                actions.add_widget(btn)
            card.add_widget(actions)
            box.add_widget(card)

    def _attach_dialog(self, entry):
        content = BoxLayout(orientation="vertical", spacing=10, padding=10)
        ti = TextInput(text=entry.compulsion or "", hint_text="What did you do?",
                       multiline=False, size_hint_y=None, height=dp(44))
        content.add_widget(ti)
        popup = Popup(title="Attach compulsion", content=content, size_hint=(0.9, 0.3))

        def on_save(_):
            App.get_running_app().journal.attach_compulsion(entry.id, ti.text)
            popup.dismiss()

        btn_row = BoxLayout(size_hint_y=None, height=dp(44), spacing=8)
        save_btn = Button(text="Save")
        save_btn.bind(on_release=on_save)
        cancel_btn = Button(text="Cancel")
        cancel_btn.bind(on_release=lambda _: popup.dismiss())
        btn_row.add_widget(save_btn)
        btn_row.add_widget(cancel_btn)
        content.add_widget(btn_row)
        popup.open()

    def _show_strategies(self, entry):
        category = match_category(entry.obsession)
        if category is None:
            _show_msg("Coping Strategies", "No specific strategies matched. Try the Coping Tips on the ERP tab.")
            return
        text = "\n".join(f"- {s}" for s in match_strategies(entry.obsession))
        _show_msg(category, text)

    def confirm_delete_all(self):
        content = BoxLayout(orientation="vertical", spacing=10, padding=10)
        content.add_widget(Label(text="Delete every entry?"))
        popup = Popup(title="Delete all", content=content, size_hint=(0.8, 0.3))
        btn_row = BoxLayout(size_hint_y=None, height=dp(44), spacing=8)
        yes = Button(text="Delete")
        yes.bind(on_release=lambda _: (App.get_running_app().journal.delete_all(), popup.dismiss()))
        no = Button(text="Cancel")
        no.bind(on_release=lambda _: popup.dismiss())
        btn_row.add_widget(yes)
        btn_row.add_widget(no)
        content.add_widget(btn_row)
        popup.open()


# ---------------------------------------------------------------------------
# Mood
# ---------------------------------------------------------------------------


class MoodScreen(Screen):
    """Mood check-in form with trigger insights for this session."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._score = 3

    def on_enter(self):
        self._render()

    def _set_score(self, value):
        self._score = value

    def _toggle(self, trigger):
        App.get_running_app().moods.toggle_trigger(trigger)

    def _save(self, note_input):
        store = App.get_running_app().moods
        store.note = note_input.text
        store.record_mood(self._score)
        self._render()

    def _render(self):
        store = App.get_running_app().moods
        c = self.ids.content
        c.clear_widgets()

        c.add_widget(_make_label("How are you feeling?", font_size=sp(20), bold=True, color=_ACCENT))
        c.add_widget(_rating_row(range(1, 6), self._score, self._set_score, "mood_score"))

        c.add_widget(_make_label("Triggers", font_size=sp(16), bold=True, color=_ACCENT))
        grid = BoxLayout(orientation="vertical", size_hint_y=None, height=dp(84), spacing=dp(4))
        for row_triggers in (list(Trigger)[:3], list(Trigger)[3:]):
            row = BoxLayout(spacing=dp(4))
            for trigger in row_triggers:
                btn = ToggleButton(
                    text=trigger.value,
                    state="down" if trigger in store.selected_triggers else "normal",
                )
                btn.bind(on_release=lambda _, t=trigger: self._toggle(t))
                row.add_widget(btn)
            grid.add_widget(row)
        c.add_widget(grid)

        note = TextInput(text=store.note, hint_text="Note (optional)", size_hint_y=None, height=dp(80))
        c.add_widget(note)
        save = Button(text="Save check-in", size_hint_y=None, height=dp(44), background_color=_ACCENT)
        save.bind(on_release=lambda _: self._save(note))
        c.add_widget(save)

        history = store.history()
        c.add_widget(Widget(size_hint_y=None, height=dp(12)))
        c.add_widget(_make_label("Insights", font_size=sp(20), bold=True, color=_ACCENT))
        if not history:
            c.add_widget(_make_label("No check-ins yet.", color=_MUTED))
            return

        avg = average_mood(history)
        c.add_widget(_make_label(f"Average mood: {avg:.1f}/5 over {len(history)} check-in(s)"))
        for trigger, count in most_common_triggers(history):
            c.add_widget(_make_label(f"  {trigger.value}: {count}", font_size=sp(13)))

        try:
            img = mood_timeseries(recent_mood_series(history))
        except Exception:
            log.debug("Mood chart failed", exc_info=True)
            img = None
        if img is not None:
            core = _pil_to_kivy_image(img)
            c.add_widget(KivyImage(texture=core.texture, size_hint_y=None, height=dp(180)))


# ---------------------------------------------------------------------------
# Relaxation
# ---------------------------------------------------------------------------


class RelaxationScreen(Screen):
    """Breathing and body-scan exercises."""

    message = StringProperty(BREATHE_IN)
    counter = StringProperty("")
    progress = NumericProperty(0)
    running = BooleanProperty(False)
    show_back = BooleanProperty(False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        cycles = cfg.load_config().breathing_cycles
        self._breathing = BreathingExercise(Clock, cycles=cycles, signal=_completion_signal)
        self._body_scan = BodyScanExercise(Clock)

    def start_breathing(self):
        self._body_scan.stop()
        self._breathing.begin(on_tick=self._on_tick, on_complete=self._on_complete)
        self._show(self._breathing.snapshot())

    def start_body_scan(self):
        self._breathing.stop()
        self._body_scan.begin(on_tick=self._on_tick, on_complete=self._on_complete)
        self._show(self._body_scan.snapshot())

    def stop(self):
        self._breathing.stop()
        self._body_scan.stop()
        self.running = False

    def on_leave(self):
        self.stop()
        self.show_back = False

    def go_back(self):
        self.manager.transition = SlideTransition(direction="right")
        self.manager.current = "erp"

    def _show(self, snap: TimerSnapshot):
        self.running = snap.state is TimerState.RUNNING
        if snap.phase is not None:
            self.message = snap.phase.label
        self.counter = str(snap.remaining)
        self.progress = snap.progress * 100

    def _on_tick(self, snap):
        self._show(snap)

    def _on_complete(self, snap):
        self.running = False
        self.message = "Well done"
        self.counter = ""
        if snap.phase is not None and snap.phase.kind is PhaseKind.EXHALE:
            _show_msg("Breathing complete", get_reassurance())


# ---------------------------------------------------------------------------
# ERP
# ---------------------------------------------------------------------------


class ErpScreen(Screen):
    """Exposure timer with anxiety ratings before and after."""

    time_text = StringProperty("01:00")
    running = BooleanProperty(False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._timer = ErpTimer(Clock)
        self._seconds = cfg.load_config().erp_seconds
        self._before = 5
        self._after = 5
        self._completed = False
        self.time_text = format_time(self._seconds)
        Clock.schedule_once(lambda dt: self._build_controls(), 0)

    def _build_controls(self):
        row = self.ids.duration_row
        row.clear_widgets()
        for seconds in ERP_DURATIONS:
            btn = ToggleButton(
                text=f"{seconds // 60} min", group="erp_duration", allow_no_selection=False,
                state="down" if seconds == self._seconds else "normal",
            )
            btn.bind(on_release=lambda _, s=seconds: self._select_duration(s))
            row.add_widget(btn)
        self._render_ratings()

    def _select_duration(self, seconds):
        self._seconds = seconds
        if not self.running:
            self.time_text = format_time(seconds)

    def _set_before(self, v):
        self._before = v

    def _set_after(self, v):
        self._after = v
        self._render_ratings()

    def _render_ratings(self):
        box = self.ids.rating_box
        box.clear_widgets()
        if self.running:
            return
        box.add_widget(_make_label("Rate Anxiety Before Exposure:", bold=True))
        box.add_widget(_rating_row(range(1, 11), self._before, self._set_before, "anxiety_before"))
        if not self._completed:
            return
        box.add_widget(_make_label("Rate Anxiety After Exposure:", bold=True))
        box.add_widget(_rating_row(range(1, 11), self._after, self._set_after, "anxiety_after"))
        box.add_widget(_make_label(f"Calmness Meter: {10 - self._after}/10", bold=True, color=_ACCENT))
        save = Button(text="Save session", size_hint_y=None, height=dp(44), background_color=_ACCENT)
        save.bind(on_release=lambda _: self._save_session())
        box.add_widget(save)

    def toggle_timer(self):
        if self.running:
            self._timer.stop()
            self.running = False
        else:
            self._completed = False
            self.running = True
            self._timer.start_exposure(
                self._seconds,
                challenge=self.ids.challenge_input.text.strip(),
                on_tick=self._on_tick,
                on_complete=self._on_complete,
            )
            self.time_text = format_time(self._seconds)
        self._render_ratings()

    def _on_tick(self, snap):
        self.time_text = format_time(snap.remaining)

    def _on_complete(self, snap):
        self.running = False
        self._completed = True
        _completion_signal()
        self._render_ratings()

    def _save_session(self):
        app = App.get_running_app()
        session = db.log_erp_session(
            app.conn,
            ErpSessionCreate(
                challenge=self.ids.challenge_input.text.strip(),
                duration_seconds=self._seconds,
                anxiety_before=self._before,
                anxiety_after=self._after,
            ),
        )
        self._completed = False
        self._render_ratings()
        _show_msg("Session saved", f"Calmness: {session.calmness}/10\n\n{get_reassurance()}")

    def show_tips(self):
        text = "\n\n".join(f"{name}: {tip}" for name, tip in COPING_TIPS)
        _show_msg("Coping Strategies", text)

    def panic(self):
        relax = self.manager.get_screen("relaxation")
        relax.show_back = True
        self.manager.transition = SlideTransition(direction="left")
        self.manager.current = "relaxation"
        relax.start_breathing()

    def stop_timer(self):
        self._timer.stop()
        self.running = False

    def on_leave(self):
        # Leaving for the panic screen keeps the exposure running.
        if self.manager.current != "relaxation":
            self.stop_timer()
            self._render_ratings()


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


class OcdianApp(App):
    """Kivy application entry point."""

    title = "OCDian"

    def build(self):
        logging.basicConfig(level=logging.INFO)
        self.conn = db.get_connection()
        self.journal = JournalStore(self.conn)
        self.journal.load()
        self.moods = MoodStore()
        Builder.load_string(KV)
        sm = ScreenManager()
        sm.add_widget(JournalScreen(name="journal"))
        sm.add_widget(MoodScreen(name="mood"))
        sm.add_widget(RelaxationScreen(name="relaxation"))
        sm.add_widget(ErpScreen(name="erp"))
        return sm

    def on_stop(self):
        self.root.get_screen("relaxation").stop()
        self.root.get_screen("erp").stop_timer()
        self.conn.close()


if __name__ == "__main__":
    OcdianApp().run()
