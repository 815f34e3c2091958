from meeba_tank.app import main

if __name__ == "__main__":
    # e.g. python main.py --seed 42 --bodies 50, or add --headless --frames 2000
    main()
