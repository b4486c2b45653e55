"""
chameo - rotate a wallhaven wallpaper and theme kitty and Hyprland from it.
"""
