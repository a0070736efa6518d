# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later

# Keyboard event stages
# stage 0: host delivers key down/up events (or a test driver types them)
# stage 1: track modifier keydown/up, including sticky and locked modifiers
# stage 2: convert key event + modifiers into a character code
# stage 3: feed character codes through the shift-state decoder (see ..ime.shifting)
