from claude_usage import main

main()
