from wallpaper_span_tool.app import main

main()
