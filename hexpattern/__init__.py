"""
hexpattern - compose motion patterns for a seven-motor hexagon controller.

Each of the seven channels (one center motor, six around it at 60 degree
steps) plays its own looping track of segments.  A segment says how long to
run and how fast: duration in milliseconds, speed as a percentage that the
controller receives in its native 0-6 units.

What is in the box:

- **Segment timeline model.** ``SegmentStore`` keeps one ordered track per
  channel and replaces a track immutably on every edit.
- **Drag editing.** ``GestureController`` turns a pointer drag into duration
  (horizontal) or speed (vertical) changes, locking the axis on the first
  movement.
- **Looping preview.** ``PlaybackScheduler`` advances every channel from a
  shared 16 ms tick and reports each channel's angle, speed and progress.
- **Motor positions.** ``MotorAssignmentMap`` binds hexagon positions to
  channels.
- **Wire format and transport.** ``serialize()`` produces the JSON pattern;
  ``ServerClient`` POSTs it to the controller.
- **Editor session.** ``Editor`` ties it together with a terminal preview,
  an optional WebSocket bridge for a UI shell, and MIDI import.

Minimal example:

    ```python
    import hexpattern

    editor = hexpattern.Editor(endpoint="http://192.168.0.40:8080/pattern")

    first = editor.add_segment()
    editor.set_speed(first, 80)

    editor.select_channel(3)
    second = editor.add_segment()
    editor.set_duration(second, 2500)

    print(editor.pattern_json())
    editor.play()
    ```

Package-level exports: ``Editor``, ``SegmentStore``, ``GestureController``,
``PlaybackScheduler``, ``MotorAssignmentMap``, ``ServerClient``, ``serialize``.
"""

import hexpattern.assignment
import hexpattern.client
import hexpattern.editor
import hexpattern.gesture
import hexpattern.playback
import hexpattern.segments
import hexpattern.serializer


Editor = hexpattern.editor.Editor
SegmentStore = hexpattern.segments.SegmentStore
GestureController = hexpattern.gesture.GestureController
PlaybackScheduler = hexpattern.playback.PlaybackScheduler
MotorAssignmentMap = hexpattern.assignment.MotorAssignmentMap
ServerClient = hexpattern.client.ServerClient
serialize = hexpattern.serializer.serialize
