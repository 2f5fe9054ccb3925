"""
Discord cogs that connect the moderation core to py-cord events.

- **events_listener.py**: on_ready logging, scheduler startup, command errors
- **message_listener.py**: on_message / on_message_edit moderation, DM ping,
  and the ``.check <N>`` text command
- **sweep_cmds.py**: ``/check`` slash command
"""
